from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field


class MoneyResponse(BaseModel):
    amountCents: int
    currency: str


class CreateOrderResponse(BaseModel):
    success: bool = True
    orderId: str


class CategoryResponse(BaseModel):
    categoryId: str
    name: str
    icon: str | None = None


class ProductResponse(BaseModel):
    productId: str
    name: str
    priceMoney: MoneyResponse
    stockQuantity: int
    status: str
    categoryId: str | None = None
    categoryName: str | None = None


class MenuResponse(BaseModel):
    categories: list[CategoryResponse] = Field(default_factory=list)
    products: list[ProductResponse] = Field(default_factory=list)


class PublicMenuResponse(BaseModel):
    menu: MenuResponse
    tableId: int | None = None
    checkoutEnabled: bool
    warning: str | None = None


class OrderItemResponse(BaseModel):
    itemId: str
    productId: str
    name: str
    quantity: int
    unitPrice: MoneyResponse
    lineTotal: MoneyResponse


class OrderResponse(BaseModel):
    orderId: str
    tableId: int | None = None
    tableName: str | None = None
    status: str
    items: list[OrderItemResponse] = Field(default_factory=list)
    total: MoneyResponse
    createdAt: datetime


class KitchenOrderResponse(OrderResponse):
    minutesWaiting: int
    isUrgent: bool
    isNew: bool


class KitchenQueueResponse(BaseModel):
    orders: list[KitchenOrderResponse] = Field(default_factory=list)
    counts: dict[str, int] = Field(default_factory=dict)


class TableResponse(BaseModel):
    tableId: int
    name: str
    status: str
    total: MoneyResponse


class TableListResponse(BaseModel):
    tables: list[TableResponse] = Field(default_factory=list)
    counts: dict[str, int] = Field(default_factory=dict)
    counterOrders: list[OrderResponse] = Field(default_factory=list)


class TableCorrectionResponse(BaseModel):
    tableId: int
    previousStatus: str
    status: str
    previousTotal: MoneyResponse
    total: MoneyResponse


class ReconciliationResponse(BaseModel):
    tablesChecked: int
    corrections: list[TableCorrectionResponse] = Field(default_factory=list)
    ghostOrdersFinalized: list[str] = Field(default_factory=list)


class TableQrCodeResponse(BaseModel):
    tableId: int
    name: str
    menuUrl: str


class ReceiptResponse(BaseModel):
    tableId: int | None = None
    orderIds: list[str] = Field(default_factory=list)
    items: list[OrderItemResponse] = Field(default_factory=list)
    total: MoneyResponse


class TabClosedResponse(BaseModel):
    tableId: int | None = None
    finalizedOrderIds: list[str] = Field(default_factory=list)
    tableStatus: str | None = None


class ReceiptEditResponse(BaseModel):
    receipt: ReceiptResponse
    tabClosed: bool = False
    tableStatus: str | None = None


class StockAdjustmentResponse(BaseModel):
    product: ProductResponse
    audited: bool


class InventoryLogResponse(BaseModel):
    logId: str
    productId: str
    productName: str | None = None
    changeAmount: int
    reason: str
    createdAt: datetime


class InventoryOverviewResponse(BaseModel):
    products: list[ProductResponse] = Field(default_factory=list)
    lowStockCount: int
    totalUnits: int


class RevenueBucketResponse(BaseModel):
    label: str
    revenue: MoneyResponse
    orders: int


class ProductSalesResponse(BaseModel):
    productId: str
    name: str
    quantity: int
    revenue: MoneyResponse


class RevenueReportResponse(BaseModel):
    range: str
    start: datetime
    revenue: MoneyResponse
    orders: int
    itemsSold: int
    buckets: list[RevenueBucketResponse] = Field(default_factory=list)
    topProducts: list[ProductSalesResponse] = Field(default_factory=list)


class TransactionResponse(BaseModel):
    transactionId: str
    description: str
    amount: MoneyResponse
    type: str
    status: str
    dueDate: date | None = None
    counterparty: str | None = None
    category: str | None = None
    createdAt: datetime
    paidAt: datetime | None = None


class LedgerSummaryResponse(BaseModel):
    pendingReceivable: MoneyResponse
    pendingPayable: MoneyResponse
    paidIncome: MoneyResponse
    paidExpense: MoneyResponse


class SettingsResponse(BaseModel):
    restaurantName: str
    currency: str
    darkMode: bool
    printerEnabled: bool
    soundAlertEnabled: bool


class MaintenanceResponse(BaseModel):
    ordersDeleted: int
    tablesFreed: int = 0


class DashboardResponse(BaseModel):
    ordersToday: int
    activeTables: int
    totalTables: int
    revenueToday: MoneyResponse
    recentOrders: list[OrderResponse] = Field(default_factory=list)
