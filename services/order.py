import json
import logging
import secrets
import string
import time
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from enums.order_status import OrderStatus
from enums.payment_status import PaymentStatus
from models.address import UserAddressDTO
from models.checkout_session import CheckoutSessionDTO, CartSnapshotItemDTO, PayPalCaptureDTO
from models.order import OrderDTO, OrderItemDTO
from repositories.cart import CartRepository
from repositories.checkout_session import CheckoutSessionRepository
from repositories.discount import DiscountRepository, DiscountUsageRepository
from repositories.order import OrderRepository
from repositories.product import ProductRepository

logger = logging.getLogger(__name__)

ORDER_NUMBER_ALPHABET = string.ascii_uppercase + string.digits


class OrderService:

    @staticmethod
    def generate_order_number() -> str:
        """
        Human-readable unique order number.

        Format: ORD-<unix ms>-<9 random uppercase chars>, e.g. ORD-1735689600000-K3J9X2M1Q
        """
        suffix = ''.join(secrets.choice(ORDER_NUMBER_ALPHABET) for _ in range(9))
        return f"ORD-{int(time.time() * 1000)}-{suffix}"

    @staticmethod
    def parse_cart_snapshot(cart_snapshot: str) -> list[CartSnapshotItemDTO]:
        return [CartSnapshotItemDTO.model_validate(item) for item in json.loads(cart_snapshot)]

    @staticmethod
    async def create_from_checkout_session(
        checkout_session: CheckoutSessionDTO,
        capture: PayPalCaptureDTO,
        address: UserAddressDTO | None,
        session: AsyncSession | Session
    ) -> OrderDTO:
        """
        Write the order for a captured checkout session.

        Runs inside the caller's transaction and does not commit. Amounts are
        copied from the stored breakdown, nothing is recomputed.

        Steps:
        1. Insert order (payment_status paid) and item + service snapshots
        2. Decrement inventory of tracked products
        3. Log discount usage and increment usage_count atomically
        4. Add status history entry 'pending'
        5. Mark the checkout session captured
        6. Clear the cart

        Returns:
            The created OrderDTO
        """
        now = datetime.now()
        address_snapshot = address.model_dump_json(exclude={'user_id', 'is_default'}) if address else None
        order = await OrderRepository.create(OrderDTO(
            order_number=OrderService.generate_order_number(),
            user_id=checkout_session.user_id,
            status=OrderStatus.PENDING,
            payment_status=PaymentStatus.PAID,
            payment_method="paypal",
            subtotal=checkout_session.subtotal,
            user_discount_amount=checkout_session.user_discount_amount,
            discount_amount=checkout_session.campaign_discount_amount,
            shipping_cost=checkout_session.shipping_cost,
            tax_amount=checkout_session.tax_amount,
            total=checkout_session.total,
            discount_id=checkout_session.discount_id,
            shipping_profile_id=checkout_session.shipping_profile_id,
            shipping_address=address_snapshot,
            paypal_order_id=checkout_session.paypal_order_id,
            paypal_capture_id=capture.capture_id,
            paid_at=now,
        ), session)

        for item in OrderService.parse_cart_snapshot(checkout_session.cart_snapshot):
            order_item = await OrderRepository.add_item(OrderItemDTO(
                order_id=order.id,
                product_id=item.product_id,
                product_name=item.product_name,
                product_sku=item.product_sku,
                quantity=item.quantity,
                unit_price=item.unit_price,
                total_price=item.item_total,
                width_mm=item.width_mm,
                height_mm=item.height_mm,
                custom_options=item.custom_options,
                uploaded_file_url=item.uploaded_file_url,
                uploaded_file_name=item.uploaded_file_name,
            ), session)
            for service in item.services:
                await OrderRepository.add_item_service(
                    order_item.id, service.zusatzleistung_id, service.name, service.description, service.price,
                    session)
            await ProductRepository.decrement_inventory(item.product_id, item.quantity, session)

        if checkout_session.discount_id is not None:
            discount = await DiscountRepository.get_by_id(checkout_session.discount_id, session)
            if discount and discount.usage_limit is not None and discount.usage_count >= discount.usage_limit:
                # Customer already paid the approved amount, honor it
                logger.warning(f"Discount {discount.code} exceeded its usage limit with order {order.order_number}")
            await DiscountUsageRepository.record_usage(
                checkout_session.discount_id, checkout_session.user_id, order.id, session)
            await DiscountRepository.increment_usage_count(checkout_session.discount_id, session)

        await OrderRepository.add_status_history(order.id, OrderStatus.PENDING, "PayPal payment captured", session)
        await CheckoutSessionRepository.mark_captured(checkout_session.paypal_order_id, order.id, session)
        await CartRepository.clear(checkout_session.user_id, session)

        logger.info(f"Order {order.order_number} created for user {checkout_session.user_id} "
                    f"(PayPal {checkout_session.paypal_order_id}, total {checkout_session.total})")
        return order
