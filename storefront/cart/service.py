"""Cart store: owns the line items and keeps storage in step with them."""
import asyncio
from dataclasses import replace
from decimal import Decimal
from typing import Callable, Iterable, Iterator, List, Optional, Tuple

from storefront.errors import (
    ERROR_OUT_OF_STOCK,
    InvalidQuantity,
    PersistenceFailure,
    ProductNotFound,
    StockExceeded,
)
from storefront.logging import get_logger, sanitize_id_for_logging
from storefront.models import Product
from storefront.pricing import PriceQuote
from storefront.services.money import to_float
from .models import CartLine, CartTotals
from .storage import CartStorage

logger = get_logger(__name__)

PersistenceCallback = Callable[[PersistenceFailure], None]


class CartStore:
    """
    In-memory shopping cart for one session.

    Features:
    - One line per product id, kept in insertion order
    - Quantities bounded by [1, product.stock]
    - Totals recomputed from the lines on every call
    - Fire-and-forget save after every successful mutation

    Mutations are synchronous and all-or-nothing: a call that raises leaves
    the cart exactly as it was. Storage errors never undo a mutation; they
    are logged and handed to `on_persistence_failure`.
    """

    def __init__(
        self,
        storage: Optional[CartStorage] = None,
        on_persistence_failure: Optional[PersistenceCallback] = None,
    ) -> None:
        self.storage = storage
        self.on_persistence_failure = on_persistence_failure
        self._lines: List[CartLine] = []
        self._mutations = 0
        self._saved_version = 0
        self._unsaved = False
        self._save_lock = asyncio.Lock()
        self._pending: set[asyncio.Task] = set()
        self._ready = asyncio.Event()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    # Lines handed out are copies; change quantities through the mutators.

    @property
    def items(self) -> Tuple[CartLine, ...]:
        return tuple(replace(line) for line in self._lines)

    @property
    def is_ready(self) -> bool:
        """True once `load()` has finished (successfully or not)."""
        return self._ready.is_set()

    @property
    def mutation_count(self) -> int:
        return self._mutations

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[CartLine]:
        return iter(self.items)

    def __contains__(self, product_id: object) -> bool:
        return self._find(product_id) is not None

    def get_line(self, product_id) -> Optional[CartLine]:
        line = self._find(product_id)
        return replace(line) if line else None

    def _find(self, product_id) -> Optional[CartLine]:
        return next((line for line in self._lines if line.product_id == product_id), None)

    def line_quote(self, product_id: str) -> PriceQuote:
        """Tiered price of one line."""
        line = self._find(product_id)
        if line is None:
            raise ProductNotFound(product_id)
        return line.quote

    def totals(self) -> CartTotals:
        """Item count and discounted subtotal, recomputed from the lines."""
        return CartTotals(
            item_count=sum(line.quantity for line in self._lines),
            subtotal=sum((line.total_price for line in self._lines), Decimal("0")),
        )

    def to_dict(self) -> dict:
        """Cart summary for display."""
        totals = self.totals()
        return {
            "is_empty": not self._lines,
            "item_count": totals.item_count,
            "items": [
                {
                    "product_id": line.product_id,
                    "title": line.product.title,
                    "quantity": line.quantity,
                    "stock": line.product.stock,
                    **line.quote.to_dict(),
                }
                for line in self._lines
            ],
            "subtotal": to_float(totals.subtotal),
        }

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_item(self, product: Product, quantity: int = 1) -> CartLine:
        """
        Add `quantity` units of `product`.

        An existing line for the same product grows by `quantity` and takes
        the new product snapshot; otherwise a line is appended.

        Raises:
            InvalidQuantity: quantity < 1 or product has no stock
            StockExceeded: resulting quantity > product.stock
        """
        self._check_addable(product, quantity)

        line = self._find(product.id)
        new_quantity = quantity + (line.quantity if line else 0)
        if new_quantity > product.stock:
            raise StockExceeded(requested=new_quantity, available=product.stock)

        if line:
            line.product = product
            line.quantity = new_quantity
        else:
            line = CartLine(product=product, quantity=new_quantity)
            self._lines.append(line)

        self._commit("add", product.id)
        return replace(line)

    def remove_item(self, product_id: str) -> bool:
        """Remove the line for `product_id`. Returns False if there was none."""
        remaining = [line for line in self._lines if line.product_id != product_id]
        if len(remaining) == len(self._lines):
            return False
        self._lines = remaining
        self._commit("remove", product_id)
        return True

    def set_quantity(self, product_id: str, quantity: int) -> Optional[CartLine]:
        """
        Replace a line's quantity in place.

        A quantity below 1 removes the line (and returns None).

        Raises:
            InvalidQuantity: quantity is not an integer
            ProductNotFound: no line for `product_id`
            StockExceeded: quantity > the line's product stock
        """
        self._check_quantity(quantity)
        if quantity < 1:
            self.remove_item(product_id)
            return None

        line = self._find(product_id)
        if line is None:
            raise ProductNotFound(product_id)
        if quantity > line.product.stock:
            raise StockExceeded(requested=quantity, available=line.product.stock)

        if line.quantity != quantity:
            line.quantity = quantity
            self._commit("set_quantity", product_id)
        return replace(line)

    def merge_items(self, entries: Iterable[Tuple[Product, int]]) -> int:
        """
        Add several products in one mutation (quick reorder).

        Every entry is validated against the combined result before anything
        changes, so one bad entry rejects the whole merge.

        Returns:
            Number of new lines appended
        """
        entries = list(entries)
        if not entries:
            return 0

        staged = {line.product_id: (line.product, line.quantity) for line in self._lines}
        new_ids: List[str] = []

        for product, quantity in entries:
            self._check_addable(product, quantity)
            current = staged[product.id][1] if product.id in staged else 0
            new_quantity = current + quantity
            if new_quantity > product.stock:
                raise StockExceeded(requested=new_quantity, available=product.stock)
            if product.id not in staged:
                new_ids.append(product.id)
            staged[product.id] = (product, new_quantity)

        for line in self._lines:
            line.product, line.quantity = staged[line.product_id]
        for product_id in new_ids:
            product, quantity = staged[product_id]
            self._lines.append(CartLine(product=product, quantity=quantity))

        self._commit("merge", None)
        return len(new_ids)

    def clear(self) -> None:
        """Empty the cart (after checkout or on request)."""
        self._lines = []
        self._commit("clear", None)

    @staticmethod
    def _check_quantity(quantity) -> None:
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise InvalidQuantity()

    @classmethod
    def _check_addable(cls, product: Product, quantity: int) -> None:
        cls._check_quantity(quantity)
        if quantity < 1:
            raise InvalidQuantity()
        if product.stock < 1:
            raise InvalidQuantity(ERROR_OUT_OF_STOCK)

    def _commit(self, action: str, product_id: Optional[str]) -> None:
        self._mutations += 1
        logger.debug(
            "Cart %s product=%s lines=%d version=%d",
            action, sanitize_id_for_logging(product_id), len(self._lines), self._mutations,
        )
        self._schedule_save()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _snapshot(self) -> List[dict]:
        return [line.to_dict() for line in self._lines]

    def _schedule_save(self) -> None:
        if self.storage is None:
            return
        payload = self._snapshot()
        version = self._mutations
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No event loop (sync caller); flush() will write the latest state
            self._unsaved = True
            return
        task = loop.create_task(self._save(version, payload))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _save(self, version: int, payload: List[dict]) -> None:
        async with self._save_lock:
            if version <= self._saved_version:
                return
            try:
                await self.storage.save(payload)
            except Exception as e:
                self._report(PersistenceFailure("save", e))
                return
            self._saved_version = version
            if version >= self._mutations:
                self._unsaved = False

    async def flush(self) -> None:
        """Wait until every scheduled save has been attempted."""
        if self._unsaved and self.storage is not None:
            self._unsaved = False
            await self._save(self._mutations, self._snapshot())
        pending = [task for task in self._pending if not task.done()]
        while pending:
            await asyncio.gather(*pending)
            pending = [task for task in self._pending if not task.done()]

    async def load(self) -> bool:
        """
        Restore the saved cart.

        The result is applied only if the cart has not been mutated yet; a
        load finishing after a mutation is discarded. A failing load leaves
        an empty cart and is reported, not retried.

        Returns:
            True if the restored lines were applied
        """
        if self.storage is None:
            self._ready.set()
            return False

        try:
            raw = await self.storage.load()
            lines = self._restore(raw or [])
        except Exception as e:
            self._report(PersistenceFailure("load", e))
            lines = []

        if self._mutations > 0:
            logger.info("Discarding stale cart load: cart changed while loading")
            self._ready.set()
            return False

        self._lines = lines
        self._ready.set()
        logger.info("Cart restored with %d line(s)", len(lines))
        return True

    async def wait_ready(self) -> None:
        await self._ready.wait()

    @staticmethod
    def _restore(raw: List[dict]) -> List[CartLine]:
        """Rebuild lines from storage, enforcing cart invariants."""
        lines: List[CartLine] = []
        by_id = {}
        for entry in raw:
            line = CartLine.from_dict(entry)
            if line.quantity < 1 or not line.product.in_stock:
                continue
            existing = by_id.get(line.product_id)
            if existing:
                existing.quantity += line.quantity
                continue
            by_id[line.product_id] = line
            lines.append(line)

        for line in lines:
            line.quantity = max(1, min(line.quantity, line.product.stock))
        return lines

    def _report(self, failure: PersistenceFailure) -> None:
        logger.warning(
            "%s: %s", failure.message, type(failure.cause).__name__ if failure.cause else "unknown",
            exc_info=failure.cause,
        )
        if self.on_persistence_failure is not None:
            self.on_persistence_failure(failure)
