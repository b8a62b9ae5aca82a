from tortoise import fields, models
import uuid


# -------- Customers --------
class Customer(models.Model):
    id = fields.IntField(pk=True)
    customer_id = fields.CharField(max_length=64, unique=True, index=True)  # stable business key
    name = fields.CharField(max_length=200, index=True)
    phone_number = fields.CharField(max_length=32, null=True, index=True)
    address = fields.CharField(max_length=255, null=True)
    customer_type = fields.CharField(max_length=16, default="order", index=True)  # shop | monthly | order
    can_qty = fields.IntField(default=0)  # standard daily allotment
    created_at = fields.DatetimeField(auto_now_add=True, index=True)
    updated_at = fields.DatetimeField(auto_now=True, index=True)

    class Meta:
        table = "customers"

    def __str__(self) -> str:
        return f"{self.name} ({self.customer_id})"


# ========================
# Pricing
# ========================
class PriceSheet(models.Model):
    """
    Price per can for each customer type. The most recently created row is
    the current one; older rows stay for reference only.
    """
    id = fields.IntField(pk=True)
    order_price = fields.FloatField(null=True)
    shop_price = fields.FloatField(null=True)
    monthly_price = fields.FloatField(null=True)
    created_at = fields.DatetimeField(auto_now_add=True, index=True)

    class Meta:
        table = "price_sheets"


# ========================
# Daily ledger
# ========================
class DailyUpdate(models.Model):
    """One customer's delivered/collected/holding record for a calendar date."""
    id = fields.IntField(pk=True)
    customer_id = fields.CharField(max_length=64, index=True)
    date = fields.DateField(index=True)
    delivered_qty = fields.IntField(default=0)
    collected_qty = fields.IntField(default=0)
    holding_status = fields.IntField(default=0)  # may go negative on over-collection
    notes = fields.TextField(null=True)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "daily_updates"
        unique_together = ("customer_id", "date")

    def __str__(self) -> str:
        return f"{self.customer_id}@{self.date} (+{self.delivered_qty}/-{self.collected_qty} = {self.holding_status})"


# ========================
# Monthly bills
# ========================
class MonthlyBill(models.Model):
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    customer_id = fields.CharField(max_length=64, index=True)
    bill_month = fields.CharField(max_length=7, index=True)  # "YYYY-MM"
    bill_amount = fields.FloatField(default=0)
    total_cans_delivered = fields.IntField(default=0)
    total_delivery_days = fields.IntField(default=0)
    paid_status = fields.BooleanField(default=False, index=True)
    sent_status = fields.BooleanField(default=False, index=True)
    created_at = fields.DatetimeField(auto_now_add=True, index=True)
    updated_at = fields.DatetimeField(auto_now=True, index=True)

    class Meta:
        table = "monthly_bills"
        unique_together = ("customer_id", "bill_month")


# ========================
# One-off orders
# ========================
class Order(models.Model):
    id = fields.IntField(pk=True)
    order_date = fields.DateField(index=True)
    customer_name = fields.CharField(max_length=200, index=True)
    customer_phone = fields.CharField(max_length=32)
    customer_address = fields.CharField(max_length=255)
    delivery_amount = fields.FloatField(default=0)
    can_qty = fields.IntField()
    collected_qty = fields.IntField(default=0)
    collected_date = fields.DateField(null=True)
    delivery_date = fields.DateField(index=True)
    delivery_time = fields.CharField(max_length=16)
    order_status = fields.CharField(max_length=16, default="pending", index=True)  # pending | processing | delivered | cancelled
    notes = fields.TextField(null=True)
    created_at = fields.DatetimeField(auto_now_add=True, index=True)
    updated_at = fields.DatetimeField(auto_now=True, index=True)

    class Meta:
        table = "orders"

    def __str__(self) -> str:
        return f"Order#{self.id} {self.customer_name} x{self.can_qty}"
