from __future__ import annotations

from bistro.application.dto.responses import (
    MoneyResponse,
    OrderItemResponse,
    OrderResponse,
    ReceiptResponse,
)
from bistro.domain.billing.receipt import Receipt
from bistro.domain.common.money import Money
from bistro.domain.order.entities import Order, OrderItem


def to_money_response(money: Money) -> MoneyResponse:
    return MoneyResponse(amountCents=money.amount_cents, currency=money.currency)


def to_order_item_response(item: OrderItem) -> OrderItemResponse:
    return OrderItemResponse(
        itemId=str(item.item_id),
        productId=str(item.product_id),
        name=item.name,
        quantity=item.quantity,
        unitPrice=to_money_response(item.unit_price),
        lineTotal=to_money_response(item.line_total),
    )


def to_order_response(order: Order) -> OrderResponse:
    return OrderResponse(
        orderId=str(order.order_id),
        tableId=order.table_id,
        tableName=order.table_name,
        status=order.status.value,
        items=[to_order_item_response(item) for item in order.items],
        total=to_money_response(order.total),
        createdAt=order.created_at,
    )


def to_receipt_response(receipt: Receipt) -> ReceiptResponse:
    return ReceiptResponse(
        tableId=receipt.table_id,
        orderIds=[str(order_id) for order_id in receipt.order_ids],
        items=[to_order_item_response(item) for item in receipt.items],
        total=to_money_response(receipt.total),
    )
