"""Tools for the support chat assistant."""

from supportdesk.tools.base import BaseTool, ToolDefinition, ToolParameter
from supportdesk.tools.registry import ToolsRegistry, create_default_registry
from supportdesk.tools.schedule_appointment import ScheduleAppointmentTool

__all__ = [
    "BaseTool",
    "ScheduleAppointmentTool",
    "ToolDefinition",
    "ToolParameter",
    "ToolsRegistry",
    "create_default_registry",
]
