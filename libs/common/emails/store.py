"""
Store-related email templates.
"""

from decimal import Decimal
from html import escape
from typing import Optional

from libs.common.config import Settings
from libs.common.currency import format_cedis
from libs.common.emails.core import send_email

_STYLES = """
        body { font-family: 'Helvetica Neue', Arial, sans-serif; line-height: 1.6; color: #333; }
        .container { max-width: 600px; margin: 0 auto; padding: 20px; }
        .header { background: #000; color: #fff; padding: 30px; border-radius: 8px 8px 0 0; text-align: center; }
        .content { background: #f9f9f9; padding: 30px; border-radius: 0 0 8px 8px; }
        .order-box { background: #fff; padding: 20px; border-radius: 4px; margin: 20px 0; }
        table { width: 100%; border-collapse: collapse; }
        th, td { padding: 12px; text-align: left; border-bottom: 1px solid #eee; }
        th { background: #f5f5f5; }
        .total-row td { font-weight: bold; font-size: 18px; }
        .footer { text-align: center; color: #666; font-size: 14px; margin-top: 30px; }
"""


def _address_lines(address: dict) -> list[str]:
    lines = []
    if address.get("fullName"):
        lines.append(address["fullName"])
    if address.get("street"):
        lines.append(address["street"])
    city_line = ", ".join(
        part for part in (address.get("city"), address.get("region")) if part
    )
    if city_line:
        lines.append(city_line)
    if address.get("directions"):
        lines.append(f"Directions: {address['directions']}")
    return lines


def _items_text(items: list[dict]) -> str:
    return "\n".join(
        f"  - {item['title']} ({item['size']}, {item['color']}) x{item['quantity']}"
        f" - {format_cedis(item['price'])}"
        for item in items
    )


def _items_rows(items: list[dict]) -> str:
    return "".join(
        "<tr>"
        f"<td>{escape(item['title'])} ({escape(item['size'])}, {escape(item['color'])})</td>"
        f"<td style='text-align:center'>{item['quantity']}</td>"
        f"<td style='text-align:right'>{format_cedis(item['price'])}</td>"
        "</tr>"
        for item in items
    )


def _wrap_html(settings: Settings, title: str, inner: str) -> str:
    return f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <style>{_STYLES}</style>
</head>
<body>
    <div class="container">
        <div class="header">
            <h1 style="margin: 0;">{escape(settings.APP_NAME)}</h1>
            <p style="margin: 10px 0 0 0;">{title}</p>
        </div>
        <div class="content">
            {inner}
            <div class="footer">
                <p>Questions? Reply to this email or contact us at {escape(settings.SUPPORT_EMAIL)}</p>
                <p><a href="{escape(settings.FRONTEND_URL)}" style="color: #000;">Visit our store</a></p>
            </div>
        </div>
    </div>
</body>
</html>
"""


async def send_order_confirmation_email(
    settings: Settings,
    to_email: str,
    customer_name: str,
    order_id: str,
    items: list[dict],  # [{"title", "size", "color", "quantity", "price"}]
    delivery_fee: Decimal,
    total: Decimal,
    shipping_address: dict,
    scheduled_date: Optional[str] = None,
    time_window: Optional[str] = None,
) -> bool:
    """
    Send order confirmation email once payment is confirmed.
    """
    subject = f"Order Confirmed - {order_id}"
    address_lines = _address_lines(shipping_address)
    delivery_line = ""
    if scheduled_date:
        delivery_line = f"Scheduled delivery: {scheduled_date}"
        if time_window and time_window != "any":
            delivery_line += f" ({time_window})"

    body = f"""Hi {customer_name},

Thank you for your order! We're excited to get your items to you.

Order ID: {order_id}

Items:
{_items_text(items)}

Delivery Fee: {format_cedis(delivery_fee)}
Total: {format_cedis(total)}

Shipping Address:
{chr(10).join(address_lines)}
{delivery_line}

— The {settings.APP_NAME} Team
"""

    inner = f"""
            <p>Hi {escape(customer_name)},</p>
            <p>Thank you for your order! We're excited to get your items to you.</p>
            <div class="order-box">
                <p style="margin: 0; color: #666;">Order ID</p>
                <p style="margin: 5px 0 0; font-size: 18px; font-weight: bold;">{escape(order_id)}</p>
            </div>
            <table>
                <thead><tr><th>Item</th><th style="text-align:center">Qty</th><th style="text-align:right">Price</th></tr></thead>
                <tbody>{_items_rows(items)}</tbody>
                <tfoot>
                    <tr><td colspan="2" style="text-align:right">Delivery Fee:</td><td style="text-align:right">{format_cedis(delivery_fee)}</td></tr>
                    <tr class="total-row"><td colspan="2" style="text-align:right">Total:</td><td style="text-align:right">{format_cedis(total)}</td></tr>
                </tfoot>
            </table>
            <h3>Shipping Address</h3>
            <p>{"<br>".join(escape(line) for line in address_lines)}</p>
            {f"<p>{escape(delivery_line)}</p>" if delivery_line else ""}
"""

    return await send_email(
        settings, to_email, subject, body, _wrap_html(settings, "Order Confirmed!", inner)
    )


async def send_shipping_notification_email(
    settings: Settings,
    to_email: str,
    customer_name: str,
    order_id: str,
    items: list[dict],
    shipping_address: dict,
    tracking_number: Optional[str] = None,
    tracking_url: Optional[str] = None,
) -> bool:
    """
    Send notification when an order has shipped.
    """
    subject = f"Your Order Has Shipped - {order_id}"
    address_lines = _address_lines(shipping_address)
    tracking_text = f"\nTracking Number: {tracking_number}" if tracking_number else ""
    if tracking_number and tracking_url:
        tracking_text += f"\nTrack your package: {tracking_url}"

    body = f"""Hi {customer_name},

Great news! Your order is on its way.

Order ID: {order_id}{tracking_text}

Shipping To:
{chr(10).join(address_lines)}

Items in this shipment:
{_items_text(items)}

— The {settings.APP_NAME} Team
"""

    tracking_html = ""
    if tracking_number:
        tracking_html = f"""
            <div class="order-box">
                <p style="margin: 0; color: #666;">Tracking Number</p>
                <p style="margin: 5px 0 0; font-size: 18px; font-weight: bold;">{escape(tracking_number)}</p>
                {f'<a href="{escape(tracking_url)}">Track Package</a>' if tracking_url else ""}
            </div>
"""

    inner = f"""
            <p>Hi {escape(customer_name)},</p>
            <p>Great news! Your order is on its way.</p>
            <div class="order-box">
                <p style="margin: 0; color: #666;">Order ID</p>
                <p style="margin: 5px 0 0; font-size: 18px; font-weight: bold;">{escape(order_id)}</p>
            </div>
            {tracking_html}
            <h3>Shipping To</h3>
            <p>{"<br>".join(escape(line) for line in address_lines)}</p>
            <h3>Items in This Shipment</h3>
            <ul>{"".join(f"<li>{escape(i['title'])} ({escape(i['size'])}, {escape(i['color'])}) x {i['quantity']}</li>" for i in items)}</ul>
"""

    return await send_email(
        settings,
        to_email,
        subject,
        body,
        _wrap_html(settings, "Your Order Has Shipped!", inner),
    )
