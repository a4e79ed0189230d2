# storefront/services/cart_service.py
import asyncio
from datetime import datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from storefront.data.models.cart import CartModel
from storefront.data.models.cart_item import CartItemModel, new_item_id
from storefront.domain.schemas import ProductInfo
from storefront.domain.status import CartStatus
from storefront.domain.totals import CART_TAX_RATE, ZERO, compute_totals, to_money
from storefront.repos.cart_repo import CartRepo
from storefront.services.product_client import ProductDirectory
from storefront.utils.errors import (
    ConflictError,
    ExpiredError,
    InsufficientInventoryError,
    LimitExceededError,
    NotFoundError,
    UnavailableError,
    ValidationError,
)
from storefront.utils.logging import get_logger
from storefront.utils.settings import (
    CART_TTL_HOURS,
    MAX_ITEMS_PER_CART,
    MAX_QUANTITY_PER_ITEM,
    MIN_QUANTITY_PER_ITEM,
)

logger = get_logger(__name__)


def as_utc(value: datetime) -> datetime:
    #sqlite hands back naive datetimes, everything we write is UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_expired(cart: CartModel, now: datetime) -> bool:
    return now - as_utc(cart.updated_at) > timedelta(hours=CART_TTL_HOURS)


class CartService:
    """
    Use cases of the cart domain.

    commands (create, add, update, remove, clear, merge, abandon) change state
    and end with a single commit; get is a query that may self-heal the cart.

    Expiration is lazy: every call that loads a cart checks the age of
    ``updated_at`` and persists ``expired`` before failing. A stale cart
    stays ``active`` in storage until it is touched again or the optional
    sweep task runs.
    """

    def __init__(self, db: AsyncSession, products: ProductDirectory):
        self.repo = CartRepo(db)
        self.products = products

    #query
    async def get_cart(self, session_id: str) -> CartModel:
        now = datetime.now(timezone.utc)
        cart = await self._load(session_id)
        await self._check_expiry(cart, now)

        if cart.status != CartStatus.ACTIVE.value or not cart.items:
            return cart

        #drop lines whose product vanished, got disabled or ran out
        lines = list(cart.items)
        products = await asyncio.gather(
            *(self.products.get(i.product_id) for i in lines),
            return_exceptions=True,
        )
        #every lookup has settled here, surface the first failure
        failed = next((p for p in products if isinstance(p, BaseException)), None)
        if failed is not None:
            raise failed

        dropped = [
            item
            for item, product in zip(lines, products)
            if product is None
            or not product.is_active
            or product.inventory.quantity < item.quantity
        ]

        if dropped:
            for item in dropped:
                cart.items.remove(item)
            logger.warning(
                f"Cart {cart.id} ({session_id}): dropped unavailable items "
                f"{[i.product_id for i in dropped]}"
            )
            self._recalculate(cart, now)
            await self.repo.commit()

        return cart

    #commands
    async def create_cart(self, session_id: str) -> CartModel:
        now = datetime.now(timezone.utc)
        existing = await self.repo.get_cart_by_session(session_id)

        if existing and existing.status == CartStatus.ACTIVE.value:
            if not is_expired(existing, now):
                raise ConflictError("Active cart already exists for this session")
            #retire the stale cart in the same unit of work
            existing.status = CartStatus.EXPIRED.value
            logger.info(f"Cart {existing.id} for session {session_id} expired, replacing it")

        cart = CartModel(
            session_id=session_id,
            status=CartStatus.ACTIVE.value,
            items=[],
            subtotal=ZERO,
            tax=ZERO,
            total=ZERO,
            created_at=now,
            updated_at=now,
        )
        self.repo.add(cart)
        await self.repo.commit()

        logger.info(f"Created cart {cart.id} for session {session_id}")
        return cart

    async def add_item(
        self,
        session_id: str,
        product_id: str,
        quantity: int = 1,
        variant_id: str | None = None,
    ) -> CartModel:
        self._check_quantity(quantity)
        now = datetime.now(timezone.utc)
        cart = await self._load_active(session_id, now)

        if len(cart.items) >= MAX_ITEMS_PER_CART:
            raise LimitExceededError(f"Cart cannot contain more than {MAX_ITEMS_PER_CART} items")

        product = await self.products.get(product_id)
        if product is None:
            raise NotFoundError("Product not found")
        if not product.is_active:
            raise UnavailableError("Product is inactive")
        self._check_available(product, quantity)

        existing = self._find_line(cart, product_id, variant_id)
        if existing:
            new_quantity = existing.quantity + quantity
            if new_quantity > MAX_QUANTITY_PER_ITEM:
                raise LimitExceededError(
                    f"Cannot add more than {MAX_QUANTITY_PER_ITEM} units of an item"
                )
            logger.info(
                f"Product {product_id} already in cart {cart.id}, "
                f"quantity {existing.quantity} -> {new_quantity}"
            )
            existing.quantity = new_quantity
        else:
            logger.info(f"Adding product {product_id} x{quantity} to cart {cart.id}")
            cart.items.append(
                CartItemModel(
                    id=new_item_id(),
                    product_id=product_id,
                    variant_id=variant_id,
                    quantity=quantity,
                    price=to_money(product.price),
                )
            )

        self._recalculate(cart, now)
        await self.repo.commit()
        return cart

    async def update_item_quantity(self, session_id: str, item_id: str, quantity: int) -> CartModel:
        self._check_quantity(quantity)
        now = datetime.now(timezone.utc)
        cart = await self._load_active(session_id, now)
        item = self._find_item(cart, item_id)

        product = await self.products.get(item.product_id)
        if product is None or not product.is_active:
            raise UnavailableError("Product no longer available")
        self._check_available(product, quantity)

        item.quantity = quantity
        self._recalculate(cart, now)
        await self.repo.commit()

        logger.info(f"Cart {cart.id}: item {item_id} quantity set to {quantity}")
        return cart

    async def remove_item(self, session_id: str, item_id: str) -> CartModel:
        now = datetime.now(timezone.utc)
        cart = await self._load_active(session_id, now)
        item = self._find_item(cart, item_id)

        cart.items.remove(item)
        self._recalculate(cart, now)
        await self.repo.commit()

        logger.info(f"Cart {cart.id}: removed item {item_id}")
        return cart

    async def clear_cart(self, session_id: str) -> CartModel:
        now = datetime.now(timezone.utc)
        cart = await self._load_active(session_id, now)

        cart.items.clear()
        self._recalculate(cart, now)
        await self.repo.commit()

        logger.info(f"Cart {cart.id} cleared")
        return cart

    async def merge_carts(self, source_session_id: str, target_session_id: str) -> CartModel:
        """
        Move the source cart's lines into the target cart.

        Unlike add_item this never fails on limits: quantities are clamped to
        the per-item maximum and lines that do not fit in a full cart are
        skipped. The source cart ends up ``merged``.
        """
        if source_session_id == target_session_id:
            raise ValidationError("Source and target session IDs must differ")

        now = datetime.now(timezone.utc)
        source = await self._load_active(source_session_id, now)
        target = await self._load_active(target_session_id, now)

        skipped = 0
        for src in source.items:
            line = self._find_line(target, src.product_id, src.variant_id)
            if line:
                line.quantity = min(line.quantity + src.quantity, MAX_QUANTITY_PER_ITEM)
            elif len(target.items) < MAX_ITEMS_PER_CART:
                target.items.append(
                    CartItemModel(
                        id=new_item_id(),
                        product_id=src.product_id,
                        variant_id=src.variant_id,
                        quantity=src.quantity,
                        price=src.price,
                    )
                )
            else:
                skipped += 1

        source.status = CartStatus.MERGED.value
        source.updated_at = now
        self._recalculate(target, now)
        await self.repo.commit()

        logger.info(
            f"Merged cart {source.id} into {target.id}"
            + (f", {skipped} lines skipped (cart full)" if skipped else "")
        )
        return target

    async def abandon_cart(self, session_id: str) -> CartModel:
        now = datetime.now(timezone.utc)
        cart = await self._load_active(session_id, now)

        cart.status = CartStatus.ABANDONED.value
        cart.updated_at = now
        await self.repo.commit()

        logger.info(f"Cart {cart.id} abandoned")
        return cart

    #helpers
    async def _load(self, session_id: str) -> CartModel:
        cart = await self.repo.get_cart_by_session(session_id)
        if not cart:
            raise NotFoundError("Cart not found")
        return cart

    async def _check_expiry(self, cart: CartModel, now: datetime) -> None:
        if cart.status == CartStatus.EXPIRED.value:
            raise ExpiredError("Cart has expired")

        if cart.status == CartStatus.ACTIVE.value and is_expired(cart, now):
            cart.status = CartStatus.EXPIRED.value
            await self.repo.commit()
            logger.info(f"Cart {cart.id} expired (last update {cart.updated_at})")
            raise ExpiredError("Cart has expired")

    async def _load_active(self, session_id: str, now: datetime) -> CartModel:
        cart = await self._load(session_id)
        await self._check_expiry(cart, now)
        if cart.status != CartStatus.ACTIVE.value:
            raise ConflictError("Cart is no longer active")
        return cart

    @staticmethod
    def _check_quantity(quantity: int) -> None:
        if not MIN_QUANTITY_PER_ITEM <= quantity <= MAX_QUANTITY_PER_ITEM:
            raise ValidationError(
                f"Quantity must be between {MIN_QUANTITY_PER_ITEM} and {MAX_QUANTITY_PER_ITEM}"
            )

    @staticmethod
    def _check_available(product: ProductInfo, quantity: int) -> None:
        available = product.inventory.available
        if available < quantity:
            raise InsufficientInventoryError(f"Only {max(available, 0)} items available")

    @staticmethod
    def _find_line(cart: CartModel, product_id: str, variant_id: str | None) -> CartItemModel | None:
        return next(
            (i for i in cart.items if i.product_id == product_id and i.variant_id == variant_id),
            None,
        )

    @staticmethod
    def _find_item(cart: CartModel, item_id: str) -> CartItemModel:
        item = next((i for i in cart.items if i.id == item_id), None)
        if item is None:
            raise NotFoundError("Item not found in cart")
        return item

    @staticmethod
    def _recalculate(cart: CartModel, now: datetime) -> None:
        cart.apply_totals(compute_totals(cart.items, tax_rate=CART_TAX_RATE))
        cart.updated_at = now
