"""Constants for the appointment scheduling tool."""

SERVICE_TYPES: tuple[str, ...] = (
    "product_demo",
    "technical_support",
    "purchase_consultation",
    "device_setup",
    "repair_assessment",
)

SERVICE_TYPE_LABELS: dict[str, str] = {
    "product_demo": "Product Demonstration",
    "technical_support": "Technical Support Session",
    "purchase_consultation": "Purchase Consultation",
    "device_setup": "Device Setup Assistance",
    "repair_assessment": "Repair Assessment",
}

# Start inclusive, end exclusive.
BUSINESS_HOURS_START = 9
BUSINESS_HOURS_END = 18
