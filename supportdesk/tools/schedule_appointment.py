"""Appointment scheduling tool (simulated; books nothing externally)."""

from collections.abc import Callable
from datetime import date
from typing import Any

from supportdesk.models.llm import ToolResult
from supportdesk.tools.base import BaseTool, ToolDefinition, ToolParameter
from supportdesk.tools.constants import (
    BUSINESS_HOURS_END,
    BUSINESS_HOURS_START,
    SERVICE_TYPE_LABELS,
    SERVICE_TYPES,
)
from supportdesk.utils.ids import generate_id
from supportdesk.utils.logging import get_logger
from supportdesk.utils.validation import (
    validate_business_hours,
    validate_email,
    validate_enum,
    validate_future_date,
    validate_min_length,
)

logger = get_logger(__name__)

SCHEDULE_APPOINTMENT_DEFINITION = ToolDefinition(
    name="schedule_appointment",
    description=(
        "Schedule a customer appointment for store services. Use this when a customer wants to book a "
        "consultation, product demo, technical support session, or any in-store service. The appointment "
        "will be confirmed and a confirmation email will be sent to the customer."
    ),
    properties={
        "customerName": ToolParameter(
            type="string",
            description="Full name of the customer booking the appointment",
        ),
        "customerEmail": ToolParameter(
            type="string",
            description="Email address for sending appointment confirmation",
        ),
        "preferredDate": ToolParameter(
            type="string",
            description="Preferred date for the appointment in YYYY-MM-DD format",
        ),
        "preferredTime": ToolParameter(
            type="string",
            description="Preferred time for the appointment in HH:MM format (24-hour)",
        ),
        "serviceType": ToolParameter(
            type="string",
            description="Type of service or consultation requested",
            enum=list(SERVICE_TYPES),
        ),
        "notes": ToolParameter(
            type=["string", "null"],
            description="Additional notes or special requests from the customer",
        ),
    },
    required=["customerName", "customerEmail", "preferredDate", "preferredTime", "serviceType", "notes"],
)


class ScheduleAppointmentTool(BaseTool):
    """Book a store appointment for a customer.

    Validates the arguments in a fixed order (name, email, date, time,
    service type) and reports only the first problem so the model can ask the
    customer for exactly one correction.
    """

    definition = SCHEDULE_APPOINTMENT_DEFINITION

    def __init__(self, today: Callable[[], date] | None = None):
        self._today = today or date.today

    async def execute(self, args: dict[str, Any]) -> ToolResult:
        error = self.validate_input(args)
        if error:
            logger.info(f"schedule_appointment rejected: {error}")
            return ToolResult(success=False, error=error)

        appointment = {
            "appointmentId": generate_id("APT"),
            "customerName": args["customerName"],
            "customerEmail": args["customerEmail"],
            "scheduledDateTime": format_date_time(args["preferredDate"], args["preferredTime"]),
            "serviceType": SERVICE_TYPE_LABELS[args["serviceType"]],
            "notes": args.get("notes") or "None",
            "status": "confirmed",
            "confirmationSent": True,
        }
        logger.info(f"Scheduled appointment {appointment['appointmentId']} ({args['serviceType']})")

        return ToolResult(
            success=True,
            result={
                "message": f"Appointment successfully scheduled for {args['customerName']}",
                "appointment": appointment,
                "nextSteps": [
                    f"Confirmation email sent to {args['customerEmail']}",
                    "Customer will receive a reminder 24 hours before the appointment",
                    "Appointment can be modified or cancelled up to 2 hours in advance",
                ],
            },
        )

    def validate_input(self, args: dict[str, Any]) -> str | None:
        """Return the first validation error message, or ``None``."""
        name_check = validate_min_length(args.get("customerName"), 2, "Customer name")
        if not name_check.valid:
            return name_check.error

        email_check = validate_email(args.get("customerEmail"))
        if not email_check.valid:
            return email_check.error

        date_check = validate_future_date(args.get("preferredDate"), today=self._today())
        if not date_check.valid:
            return f"Appointment {date_check.error.lower()}"

        time_check = validate_business_hours(args.get("preferredTime"), BUSINESS_HOURS_START, BUSINESS_HOURS_END)
        if not time_check.valid:
            return time_check.error

        service_check = validate_enum(args.get("serviceType"), SERVICE_TYPES, "service type")
        if not service_check.valid:
            return service_check.error

        return None


def format_date_time(date_value: str, time_value: str) -> str:
    """Render a validated date and time as ``YYYY-MM-DD HH:MM``."""
    return f"{date_value} {time_value}"
