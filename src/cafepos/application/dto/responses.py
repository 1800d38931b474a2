from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field


class MoneyResponse(BaseModel):
    amountCents: int
    currency: str


class OrderLineResponse(BaseModel):
    lineId: int | None = None
    menuItemId: int
    name: str
    category: str | None = None
    quantity: int
    unitPrice: MoneyResponse
    lineTotal: MoneyResponse
    modifiers: list[str] | None = None
    notes: str | None = None


class OrderResponse(BaseModel):
    orderId: int
    orderNumber: str
    tableId: int | None = None
    tableNumber: str | None = None
    tableZone: str | None = None
    status: str
    paymentStatus: str
    paymentMethod: str | None = None
    subtotal: MoneyResponse
    tax: MoneyResponse
    total: MoneyResponse
    amountPaid: MoneyResponse
    notes: str | None = None
    createdById: int
    createdByName: str
    createdAt: datetime
    updatedAt: datetime
    lines: list[OrderLineResponse] = Field(default_factory=list)


class OrderListResponse(BaseModel):
    orders: list[OrderResponse] = Field(default_factory=list)


class PaymentResponse(BaseModel):
    paymentId: int | None = None
    orderId: int
    paymentStatus: str
    orderStatus: str
    amount: MoneyResponse
    paymentMethod: str
    transactionId: str | None = None
    createdAt: datetime


class PaymentListResponse(BaseModel):
    payments: list[PaymentResponse] = Field(default_factory=list)


class TableResponse(BaseModel):
    tableId: int
    number: str
    zone: str
    seats: int
    status: str
    currentOrderId: int | None = None
    currentOrderNumber: str | None = None
    currentOrderTotal: MoneyResponse | None = None
    createdAt: datetime | None = None
    updatedAt: datetime | None = None


class TableListResponse(BaseModel):
    tables: list[TableResponse] = Field(default_factory=list)


class CountResponse(BaseModel):
    key: str
    count: int


class TableSummaryResponse(BaseModel):
    totalTables: int
    occupiedTables: int
    availableTables: int
    byStatus: list[CountResponse] = Field(default_factory=list)
    byZone: list[CountResponse] = Field(default_factory=list)


class CategoryResponse(BaseModel):
    categoryId: int
    name: str
    displayOrder: int


class CategoryListResponse(BaseModel):
    categories: list[CategoryResponse] = Field(default_factory=list)


class MenuItemResponse(BaseModel):
    itemId: int
    name: str
    priceMoney: MoneyResponse
    categoryId: int
    categoryName: str | None = None
    subcategory: str
    icon: str
    isAvailable: bool
    createdAt: datetime | None = None
    updatedAt: datetime | None = None


class MenuItemListResponse(BaseModel):
    items: list[MenuItemResponse] = Field(default_factory=list)


class MenuCategoryGroupResponse(BaseModel):
    categoryId: int
    category: str
    items: list[MenuItemResponse] = Field(default_factory=list)


class MenuResponse(BaseModel):
    version: str
    categories: list[MenuCategoryGroupResponse] = Field(default_factory=list)


class ItemSalesResponse(BaseModel):
    name: str
    quantity: int
    revenue: MoneyResponse
    averagePrice: MoneyResponse | None = None


class OrderStatsSummaryResponse(BaseModel):
    totalOrders: int
    totalRevenue: MoneyResponse
    ordersByStatus: list[CountResponse] = Field(default_factory=list)
    topItems: list[ItemSalesResponse] = Field(default_factory=list)


class PaymentMethodTotalResponse(BaseModel):
    paymentMethod: str
    total: MoneyResponse
    transactionCount: int


class DailyRevenueResponse(BaseModel):
    day: date
    revenue: MoneyResponse
    orders: int
    averageOrderValue: MoneyResponse


class FinancialReportResponse(BaseModel):
    totalRevenue: MoneyResponse
    totalSubtotal: MoneyResponse
    totalTax: MoneyResponse
    paidOrders: int
    averageOrderValue: MoneyResponse
    byPaymentMethod: list[PaymentMethodTotalResponse] = Field(default_factory=list)
    dailyBreakdown: list[DailyRevenueResponse] = Field(default_factory=list)
    topItems: list[ItemSalesResponse] = Field(default_factory=list)


class GroupSalesResponse(BaseModel):
    label: str
    secondaryLabel: str | None = None
    orderCount: int
    quantity: int = 0
    revenue: MoneyResponse
    averageOrderValue: MoneyResponse


class SalesReportResponse(BaseModel):
    byCategory: list[GroupSalesResponse] = Field(default_factory=list)
    byTable: list[GroupSalesResponse] = Field(default_factory=list)
    byZone: list[GroupSalesResponse] = Field(default_factory=list)
    byEmployee: list[GroupSalesResponse] = Field(default_factory=list)


class RecentOrderResponse(BaseModel):
    orderId: int
    orderNumber: str
    status: str
    paymentStatus: str
    total: MoneyResponse
    tableNumber: str | None = None
    createdByName: str
    createdAt: datetime


class DashboardResponse(BaseModel):
    totalRevenue: MoneyResponse
    totalOrders: int
    pendingOrders: int
    completedOrders: int
    activeStaff: int
    totalTables: int
    availableTables: int
    recentOrders: list[RecentOrderResponse] = Field(default_factory=list)
    topItems: list[ItemSalesResponse] = Field(default_factory=list)
    ordersByStatus: list[CountResponse] = Field(default_factory=list)


class EntityCountsResponse(BaseModel):
    staff: int
    tables: int
    menuItems: int
    orders: int
    payments: int


class ActivityResponse(BaseModel):
    type: str
    identifier: str
    orderNumber: str
    timestamp: datetime
    description: str
    amount: MoneyResponse | None = None


class SystemStatsResponse(BaseModel):
    database: EntityCountsResponse
    recentActivity: list[ActivityResponse] = Field(default_factory=list)
