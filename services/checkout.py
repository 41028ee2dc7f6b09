import json
import logging
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

import config
from db import session_commit, session_rollback
from enums.discount_error import DiscountError
from enums.discount_type import DiscountType
from exceptions.cart import EmptyCartException
from exceptions.checkout import AddressNotFoundException, AddressOwnershipException, \
    CheckoutSessionNotFoundException, CheckoutSessionOwnershipException, CheckoutSessionExpiredException, \
    CheckoutIntegrityException
from exceptions.discount import DiscountValidationException
from exceptions.payment import PaymentCaptureException
from exceptions.user import UserNotFoundException
from models.address import UserAddressDTO
from models.cartItem import CartItemWithDetailsDTO
from models.checkout_session import OrderBreakdownDTO, OrderTotalsDTO, CartSnapshotItemDTO, \
    CartSnapshotServiceDTO, CheckoutSessionDTO, PayPalOrderCreatedDTO, CaptureResultDTO
from repositories.address import AddressRepository
from repositories.cart import CartRepository
from repositories.checkout_session import CheckoutSessionRepository
from repositories.order import OrderRepository
from repositories.shipping_profile import ShippingProfileRepository
from repositories.user import UserRepository
from services.discount import DiscountService
from services.notification import NotificationService
from services.order import OrderService
from services.paypal import PayPalClient
from services.shipping import ShippingService
from utils.money import to_cents, to_decimal, ZERO

logger = logging.getLogger(__name__)

PAYPAL_CAPTURE_COMPLETED = "COMPLETED"


class CheckoutService:
    """
    Server-side order total derivation and the PayPal checkout flow.

    Nothing monetary is taken from the client: prices come from cart rows
    written by the server, services from the services tables, discounts and
    shipping from their tables.
    """

    @staticmethod
    async def get_owned_address(address_id: int | None, user_id: int,
                                session: AsyncSession | Session) -> UserAddressDTO:
        if address_id is None:
            raise AddressNotFoundException(address_id)
        address = await AddressRepository.get_by_id(address_id, session)
        if address is None:
            raise AddressNotFoundException(address_id)
        if address.user_id != user_id:
            raise AddressOwnershipException(address_id, user_id)
        return address

    @staticmethod
    async def compute_order_totals(
        user_id: int,
        address_id: int | None,
        discount_code: str | None,
        session: AsyncSession | Session,
        now: datetime | None = None
    ) -> OrderTotalsDTO:
        """
        Derive the authoritative order breakdown from persisted state.

        Discounts compose sequentially:
            subtotal          = Σ(unit_price * quantity + services_total)
            user_discount     = subtotal * user.discount_percent / 100
            campaign_discount = calculate_discount(code, subtotal - user_discount)
            shipping          = 0 if free_shipping code or
                                subtotal - user_discount - campaign_discount >= threshold
            taxable           = subtotal - user_discount - campaign_discount + shipping
            tax               = taxable * VAT_RATE
            total             = taxable + tax

        Each component is rounded to cents before it is used further, so
        subtotal + shipping + tax - discounts == total holds exactly.

        Args:
            user_id: Buyer
            address_id: Shipping address (must belong to the buyer)
            discount_code: Optional campaign code
            session: Database session
            now: Reference time for the discount window

        Returns:
            OrderTotalsDTO with breakdown and cart snapshot

        Raises:
            AddressNotFoundException, AddressOwnershipException: address checks
            UserNotFoundException: unknown user
            EmptyCartException: nothing to buy
            DiscountValidationException: code rejected (reason attached)
        """
        await CheckoutService.get_owned_address(address_id, user_id, session)

        user = await UserRepository.get_by_id(user_id, session)
        if user is None:
            raise UserNotFoundException(user_id)

        cart_items = await CartRepository.get_cart_items(user_id, session)
        if not cart_items:
            raise EmptyCartException(user_id)

        subtotal = sum((item.item_total for item in cart_items), ZERO)
        user_discount_percent = to_decimal(user.discount_percent)
        user_discount_amount, subtotal_after_user_discount = DiscountService.apply_user_discount(
            subtotal, user_discount_percent)

        campaign_discount_amount = ZERO
        discount_id = None
        free_shipping = False
        code = discount_code.strip() if discount_code else None
        if code:
            result = await DiscountService.validate(code, user_id, cart_items, session, now=now)
            if not result.valid:
                raise DiscountValidationException(result.error, code)
            discount = result.discount
            if not DiscountService.meets_minimum_purchase(discount, subtotal_after_user_discount):
                raise DiscountValidationException(DiscountError.BELOW_MINIMUM_PURCHASE, code)
            discount_id = discount.id
            if discount.discount_type == DiscountType.FREE_SHIPPING:
                free_shipping = True
            else:
                campaign_discount_amount = DiscountService.calculate_discount(discount, subtotal_after_user_discount)

        profile = await ShippingProfileRepository.get_selected_or_default(user_id, session)
        shipping_cost = ShippingService.calculate_shipping_cost(
            profile, subtotal_after_user_discount - campaign_discount_amount, free_shipping)

        taxable_amount = subtotal - user_discount_amount - campaign_discount_amount + shipping_cost
        tax_amount = to_cents(taxable_amount * to_decimal(config.VAT_RATE))
        total = taxable_amount + tax_amount

        return OrderTotalsDTO(
            breakdown=OrderBreakdownDTO(
                subtotal=subtotal,
                user_discount_amount=user_discount_amount,
                campaign_discount_amount=campaign_discount_amount,
                shipping_cost=shipping_cost,
                tax_amount=tax_amount,
                total=total,
            ),
            items=[CheckoutService._snapshot_item(item) for item in cart_items],
            user_discount_percent=user_discount_percent,
            discount_id=discount_id,
            discount_code=code if discount_id is not None else None,
            shipping_profile_id=profile.id if profile else None,
            address_id=address_id,
        )

    @staticmethod
    def _snapshot_item(item: CartItemWithDetailsDTO) -> CartSnapshotItemDTO:
        return CartSnapshotItemDTO(
            cart_item_id=item.id,
            product_id=item.product_id,
            product_name=item.product_name,
            product_sku=item.product_sku,
            quantity=item.quantity,
            unit_price=item.unit_price,
            width_mm=item.width_mm,
            height_mm=item.height_mm,
            uploaded_file_url=item.uploaded_file_url,
            uploaded_file_name=item.uploaded_file_name,
            custom_options=item.custom_options,
            services=[CartSnapshotServiceDTO(
                zusatzleistung_id=service.zusatzleistung_id,
                name=service.name or "",
                description=service.description,
                price=service.price,
            ) for service in item.services],
            services_total=item.services_total,
            item_total=item.item_total,
        )

    @staticmethod
    async def create_paypal_order(
        user_id: int,
        address_id: int | None,
        discount_code: str | None,
        session: AsyncSession | Session,
        paypal_client: PayPalClient
    ) -> PayPalOrderCreatedDTO:
        """
        Compute totals, open a PayPal order and persist the checkout session.

        Validation errors abort before PayPal is contacted. If PayPal
        accepted the order but the session cannot be stored, the transaction
        is rolled back, the operator alerted and CheckoutIntegrityException raised.

        Raises:
            Everything compute_order_totals raises
            PayPalApiException: PayPal rejected the order
            CheckoutIntegrityException: session could not be persisted
        """
        totals = await CheckoutService.compute_order_totals(user_id, address_id, discount_code, session)
        paypal_order = await paypal_client.create_order(totals.breakdown)

        breakdown = totals.breakdown
        try:
            await CheckoutSessionRepository.create(CheckoutSessionDTO(
                paypal_order_id=paypal_order.id,
                user_id=user_id,
                address_id=totals.address_id,
                discount_id=totals.discount_id,
                shipping_profile_id=totals.shipping_profile_id,
                subtotal=breakdown.subtotal,
                user_discount_amount=breakdown.user_discount_amount,
                campaign_discount_amount=breakdown.campaign_discount_amount,
                shipping_cost=breakdown.shipping_cost,
                tax_amount=breakdown.tax_amount,
                total=breakdown.total,
                cart_snapshot=json.dumps([item.model_dump(mode="json") for item in totals.items]),
                expires_at=datetime.now() + timedelta(minutes=config.CHECKOUT_SESSION_TTL_MINUTES),
            ), session)
            await session_commit(session)
        except Exception as e:
            await session_rollback(session)
            await NotificationService.notify_operator_integrity_failure(
                paypal_order.id, None, user_id, "create_order", e)
            raise CheckoutIntegrityException(paypal_order.id, stage="create_order") from e

        logger.info(f"Checkout session for PayPal order {paypal_order.id} stored "
                    f"(user {user_id}, total {breakdown.total})")
        return PayPalOrderCreatedDTO(
            paypal_order_id=paypal_order.id,
            approval_url=paypal_order.approval_url,
            breakdown=breakdown,
        )

    @staticmethod
    async def capture_paypal_payment(
        user_id: int,
        paypal_order_id: str,
        session: AsyncSession | Session,
        paypal_client: PayPalClient,
        now: datetime | None = None
    ) -> CaptureResultDTO:
        """
        Capture an approved PayPal order and turn the checkout session into an order.

        The stored breakdown is charged as-is; the cart is not recomputed.
        Capturing twice returns the existing order.

        Raises:
            CheckoutSessionNotFoundException: unknown PayPal order id
            CheckoutSessionOwnershipException: session of another user
            CheckoutSessionExpiredException: TTL elapsed
            AddressNotFoundException, AddressOwnershipException: address re-check
            PayPalApiException, PaymentCaptureException: PayPal did not capture
            CheckoutIntegrityException: captured at PayPal but not recorded
        """
        now = now or datetime.now()
        checkout_session = await CheckoutSessionRepository.get_by_paypal_order_id(paypal_order_id, session)
        if checkout_session is None:
            raise CheckoutSessionNotFoundException(paypal_order_id)
        if checkout_session.user_id != user_id:
            raise CheckoutSessionOwnershipException(paypal_order_id, user_id)

        if checkout_session.is_captured:
            order = await OrderRepository.get_by_id(checkout_session.order_id, session)
            logger.info(f"PayPal order {paypal_order_id} already captured, returning order {checkout_session.order_id}")
            return CaptureResultDTO(
                order_id=checkout_session.order_id,
                order_number=order.order_number if order else "",
                already_captured=True,
            )

        if checkout_session.expires_at < now:
            raise CheckoutSessionExpiredException(paypal_order_id)

        address = await CheckoutService.get_owned_address(checkout_session.address_id, user_id, session)

        capture = await paypal_client.capture_order(paypal_order_id)
        if capture.status != PAYPAL_CAPTURE_COMPLETED:
            raise PaymentCaptureException(paypal_order_id, capture.status)

        try:
            order = await OrderService.create_from_checkout_session(checkout_session, capture, address, session)
            await session_commit(session)
        except Exception as e:
            await session_rollback(session)
            await NotificationService.notify_operator_integrity_failure(
                paypal_order_id, capture.capture_id, user_id, "capture", e)
            raise CheckoutIntegrityException(paypal_order_id, capture.capture_id, stage="capture") from e

        await CheckoutService._send_confirmation(order.id, user_id, session)
        return CaptureResultDTO(order_id=order.id, order_number=order.order_number)

    @staticmethod
    async def _send_confirmation(order_id: int, user_id: int, session: AsyncSession | Session):
        # Order is committed at this point, a failing mail must not fail the request
        try:
            order = await OrderRepository.get_by_id(order_id, session)
            items = await OrderRepository.get_items(order_id, session)
            user = await UserRepository.get_by_id(user_id, session)
            await NotificationService.order_confirmation(order, items, user)
        except Exception as e:
            logger.error(f"Could not send confirmation for order {order_id}: {e}", exc_info=True)
