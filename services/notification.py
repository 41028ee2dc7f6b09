import asyncio
import logging
from datetime import datetime

import aiohttp

import config
from enums.shop_entity import ShopEntity
from models.order import OrderDTO, OrderItemDTO
from models.user import UserDTO
from services.email import EmailService
from services.pricing import PricingService
from utils.localizator import Localizator

logger = logging.getLogger(__name__)


class NotificationService:

    @staticmethod
    async def notify_operator_integrity_failure(
        paypal_order_id: str,
        capture_id: str | None,
        user_id: int,
        stage: str,
        exception: Exception
    ):
        """
        Alert the operator about a paid-but-unrecorded checkout.

        Always logs at CRITICAL; the e-mail is sent when OPERATOR_EMAIL is set.
        Never raises, the caller is already handling a failure.

        Example:
            await NotificationService.notify_operator_integrity_failure(
                paypal_order_id="5O190127TN364715T",
                capture_id="3C679366HH908993F",
                user_id=42,
                stage="capture",
                exception=e
            )
        """
        logger.critical(
            f"INTEGRITY FAILURE ({stage}): PayPal order {paypal_order_id} capture {capture_id} "
            f"user {user_id} at {datetime.now().isoformat()}: {type(exception).__name__}: {exception}"
        )
        if not config.OPERATOR_EMAIL:
            return

        values = {
            "paypal_order_id": paypal_order_id,
            "capture_id": capture_id,
            "user_id": user_id,
            "stage": stage,
            "error": f"{type(exception).__name__}: {exception}",
        }
        try:
            await EmailService.send(
                config.OPERATOR_EMAIL,
                Localizator.get_text(ShopEntity.ADMIN, "integrity_alert_subject").format(**values),
                Localizator.get_text(ShopEntity.ADMIN, "integrity_alert_body").format(**values),
            )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Failed to e-mail integrity alert for {paypal_order_id}: {e}")

    @staticmethod
    def build_order_confirmation(order: OrderDTO, items: list[OrderItemDTO]) -> tuple[str, str]:
        """
        Plain text order confirmation.

        Returns:
            (subject, body)
        """
        lines = "\n".join(
            f"{item.quantity} x {item.product_name} à {PricingService.format_price(item.unit_price)}"
            f" = {PricingService.format_price(item.total_price)}"
            for item in items
        )
        subject = Localizator.get_text(ShopEntity.USER, "order_confirmation_subject").format(
            order_number=order.order_number)
        body = Localizator.get_text(ShopEntity.USER, "order_confirmation_body").format(
            order_number=order.order_number,
            items=lines,
            subtotal=PricingService.format_price(order.subtotal),
            discounts=PricingService.format_price(order.user_discount_amount + order.discount_amount),
            shipping=PricingService.format_price(order.shipping_cost),
            tax=PricingService.format_price(order.tax_amount),
            total=PricingService.format_price(order.total),
        )
        return subject, body

    @staticmethod
    async def order_confirmation(order: OrderDTO, items: list[OrderItemDTO], user: UserDTO):
        """Best-effort confirmation mail, failures are logged and swallowed."""
        if not user.email:
            logger.warning(f"User {user.id} has no e-mail, skipping confirmation for {order.order_number}")
            return
        subject, body = NotificationService.build_order_confirmation(order, items)
        try:
            await EmailService.send(user.email, subject, body)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Order confirmation for {order.order_number} failed: {e}")
