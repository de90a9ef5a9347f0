"""Prompt construction shared by every LLM provider."""

from collections.abc import Sequence
from datetime import datetime

from supportdesk.models.chat import Message
from supportdesk.tools.registry import ToolsRegistry

CONTEXT_WINDOW_MESSAGES = 10

FAQ_KNOWLEDGE_BASE = """You are a helpful customer support agent for our e-commerce store.

Store Information:
- Name: TechHub Store
- Founded: 2023

Shipping Policy:
- Standard Shipping: 5-7 business days (Free on orders over $50)
- Express Shipping: 2-3 business days ($15)
- International Shipping: 10-14 business days (varies by location)
- Tracking information is provided via email

Return & Refund Policy:
- 30-day money-back guarantee
- Items must be unused and in original packaging
- Refunds processed within 5-7 business days
- Return shipping is free within the US
- International returns: customer pays return shipping

Support Hours:
- Monday to Friday: 9 AM - 6 PM EST
- Saturday: 10 AM - 4 PM EST
- Closed Sundays and holidays
- Average response time: 2-4 hours during business hours

Product Categories:
- Electronics (phones, tablets, laptops)
- Accessories (chargers, cases, cables)
- Smart Home Devices
- Audio Equipment

Payment Methods:
- Credit/Debit Cards (Visa, Mastercard, American Express)
- PayPal
- Apple Pay / Google Pay

Common Issues:
- If you haven't received a tracking number within 24 hours, contact support
- If your item is damaged upon arrival, open a claim within 48 hours
- For account/login issues, try resetting your password"""

GUIDELINES = """Important Guidelines:
- Be concise and helpful
- Only discuss topics related to our store, products, orders, shipping, and returns
- If asked about unrelated topics, politely redirect to store-related questions
- If you don't have information to answer a question, offer to escalate to a human agent
- Never provide personal advice, political opinions, or discuss sensitive topics
- Do not generate, encourage, or assist with any harmful, illegal, or inappropriate content"""

STRUCTURED_OUTPUT_INSTRUCTIONS = """Response Format:
Always reply with a single JSON object and nothing else:
{"answer": "<your reply to the customer>", "proposed_actions": ["<short follow-up the customer may click>"]}
- "proposed_actions" holds at most 3 short suggestions (it may be empty)
- Write suggestions from the customer's point of view (for example: Track my order)"""


def build_tools_section(tools: ToolsRegistry) -> str:
    """Describe the callable tools and today's date for the model."""
    lines = ["Available Tools:"]
    for definition in tools.definitions():
        lines.append(f"- {definition.name}: {definition.description}")
    lines.append("")
    lines.append("Only call a tool once you have every required detail from the customer; ask for anything missing.")
    lines.append(f"Current date: {datetime.now().strftime('%Y-%m-%d')}")
    return "\n".join(lines)


def build_system_prompt(tools: ToolsRegistry | None = None) -> str:
    """Assemble the system prompt: knowledge base, guidelines, output format and tools."""
    sections = [FAQ_KNOWLEDGE_BASE, GUIDELINES, STRUCTURED_OUTPUT_INSTRUCTIONS]
    if tools is not None and tools.get_tool_names():
        sections.append(build_tools_section(tools))
    return "\n\n".join(sections)


def build_conversation_context(history: Sequence[Message]) -> str:
    """Render the most recent history as ``Customer:`` / ``Agent:`` lines."""
    return "\n".join(
        f"{'Customer' if message.role == 'user' else 'Agent'}: {message.content}"
        for message in list(history)[-CONTEXT_WINDOW_MESSAGES:]
    )
