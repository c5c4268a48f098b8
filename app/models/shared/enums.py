from enum import Enum

# Enums
class UnitType(str, Enum):
    PIECE = "piece"
    KG = "kg"          # Kilogram
    G = "g"            # Gram
    BUNCH = "bunch"
    TRAY = "tray"
    LITRE = "litre"
    ML = "ml"          # Millilitre

class AdjustmentType(str, Enum):
    INCREASE = "increase"
    DECREASE = "decrease"

class AdjustmentReason(str, Enum):
    RESTOCK = "restock"
    SPOILAGE = "spoilage"
    THEFT = "theft"
    COUNTING_ERROR = "counting_error"
    DAMAGE = "damage"
    OTHER = "other"

# Reasons whose negative adjustments are booked as stock losses in profit reports
LOSS_REASONS = (
    AdjustmentReason.SPOILAGE,
    AdjustmentReason.THEFT,
    AdjustmentReason.DAMAGE,
    AdjustmentReason.OTHER,
)

class ConsumptionReference(str, Enum):
    SALE = "sale"
    ADJUSTMENT = "adjustment"

class ExpenseCategory(str, Enum):
    FIXED = "fixed"
    VARIABLE = "variable"

class ExpenseFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"

class SaleStatus(str, Enum):
    COMPLETED = "completed"
    VOIDED = "voided"

class ItemKind(str, Enum):
    STANDALONE = "standalone"
    PARENT = "parent"
    VARIANT = "variant"

class StockTrend(str, Enum):
    NEW = "new"
    STABLE = "stable"
    GROWING = "growing"
    SHRINKING = "shrinking"

class Trajectory(str, Enum):
    NEW = "new"
    EXPANDING = "expanding"
    STABLE = "stable"
    DECLINING = "declining"
