#!/usr/bin/env python3
"""Interactive chat CLI for trying a business's support assistant."""

import sys

import httpx
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Prompt

from supportdesk.utils.ids import generate_id


class ChatCLI:
    """Chats with the public endpoint as an anonymous website visitor."""

    def __init__(
        self,
        base_url: str = "http://localhost:3000",
        slug: str = "demo",
        client: httpx.Client | None = None,
        console: Console | None = None,
    ):
        """Initialize chat CLI."""
        self.base_url = base_url.rstrip("/")
        self.slug = slug
        self.visitor_id = generate_id("visitor")
        self.conversation_id: str | None = None
        self.console = console or Console()
        self.client = client or httpx.Client(timeout=60.0)

    def start(self) -> None:
        """Start the interactive chat session."""
        info = self._fetch_tenant_info()
        if info is None:
            self.console.print(
                f"[red]❌ Cannot reach business '{self.slug}' at {self.base_url}. Is the server running?[/red]"
            )
            return

        self.console.print(
            Panel.fit(
                f"[bold blue]💬 {info.get('name', self.slug)} - Support Chat[/bold blue]\n"
                f"{info.get('welcomeMessage') or ''}\n"
                "Commands: /help, /new, /quit",
                border_style="blue",
            )
        )
        self.console.print(f"[dim]Visitor id: {self.visitor_id}[/dim]")

        try:
            while True:
                user_input = Prompt.ask("\n[bold cyan]You[/bold cyan]")

                if user_input.lower() in ["/quit", "/exit", "quit", "exit"]:
                    break
                elif user_input.lower() == "/help":
                    self._show_help()
                    continue
                elif user_input.lower() == "/new":
                    self.conversation_id = None
                    self.console.print("[yellow]🔄 Next message starts a new conversation[/yellow]")
                    continue
                elif user_input.strip() == "":
                    continue

                response = self.send_message(user_input)
                if response:
                    self._display_response(response)

        except KeyboardInterrupt:
            pass
        finally:
            self.console.print("\n[yellow]👋 Goodbye![/yellow]")
            self.client.close()

    def _fetch_tenant_info(self) -> dict | None:
        try:
            response = self.client.get(f"{self.base_url}/api/chat/{self.slug}/info")
        except httpx.HTTPError:
            return None
        return response.json() if response.status_code == 200 else None

    def send_message(self, message: str) -> dict | None:
        """Send a message and remember the conversation it landed in."""
        payload = {"message": message, "visitorId": self.visitor_id}
        if self.conversation_id:
            payload["conversationId"] = self.conversation_id

        try:
            response = self.client.post(f"{self.base_url}/api/chat/{self.slug}/message", json=payload)
        except httpx.HTTPError as e:
            self.console.print(f"[red]❌ Connection error: {e}[/red]")
            return None

        if response.status_code != 200:
            error = response.json() if response.headers.get("content-type", "").startswith("application/json") else {}
            self.console.print(
                f"[red]❌ API Error: {response.status_code} - {error.get('error', response.text)}[/red]"
            )
            return None

        data = response.json()
        self.conversation_id = data.get("conversationId")
        return data

    def _display_response(self, response: dict) -> None:
        """Display the assistant reply, executed tools and suggested follow-ups."""
        message = response.get("message") or {}

        for call in response.get("toolCalls") or []:
            self.console.print(f"[magenta]🔧 {call.get('name')}[/magenta] [dim]{call.get('arguments')}[/dim]")

        self.console.print(
            Panel(
                Markdown(message.get("content", "No response")),
                title="[bold green]🤖 Assistant[/bold green]",
                border_style="green",
                padding=(1, 2),
            )
        )

        actions = response.get("proposedActions") or []
        if actions:
            self.console.print("[bold]Suggested:[/bold] " + " | ".join(actions))

    def _show_help(self) -> None:
        help_text = """
[bold]Available Commands:[/bold]
• /help - Show this help message
• /new - Start a new conversation
• /quit or /exit - Exit the chat

[bold]Example Conversation:[/bold]
1. "What is your return policy?"
2. "I'd like to book a device repair"
3. "Jane Doe, jane@example.com, next Monday at 10:00"
        """

        self.console.print(Panel(help_text.strip(), title="[cyan]❓ Help[/cyan]", border_style="cyan"))


def main():
    """Usage: chat_cli.py [base_url] [slug]"""
    base_url = sys.argv[1] if len(sys.argv) > 1 else "http://localhost:3000"
    slug = sys.argv[2] if len(sys.argv) > 2 else "demo"

    chat = ChatCLI(base_url, slug)
    chat.start()


if __name__ == "__main__":
    main()
