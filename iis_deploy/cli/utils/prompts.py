"""Interactive credential prompt"""

from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm, Prompt

from ...constants import EMOJI_LOCK
from ...models import Credentials
from ...services.pipeline_service import CredentialRequest
from ...utils.secret_utils import SecretBuffer


class CredentialPrompt:
    """Terminal stand-in for the credentials dialog

    Asks for username, password and configuration name. After a failed
    validation it shows the reason and asks whether to try again;
    declining, or leaving the username empty, cancels.
    """

    def __init__(self,
                 console: Console = None,
                 username: Optional[str] = None,
                 configuration_name: Optional[str] = None,
                 ask_configuration: bool = True):
        self.console = console or Console()
        self.username = username
        self.configuration_name = configuration_name
        self.ask_configuration = ask_configuration

    def __call__(self, request: CredentialRequest) -> Optional[Credentials]:
        if request.last_error:
            self.console.print(f"\n[red]Credential validation failed:[/red]\n{escape(request.last_error)}\n")
            if not Confirm.ask("Try again?", default=True, console=self.console):
                return None

        self.console.print(f"\n{EMOJI_LOCK} [bold]Credentials for {request.server}[/bold]")

        username = Prompt.ask(
            "Username",
            default=request.username or self.username or None,
            console=self.console,
        )
        if not username or not username.strip():
            return None

        password = Prompt.ask("Password", password=True, console=self.console)

        configuration_name = request.configuration_name or self.configuration_name
        if self.ask_configuration:
            configuration_name = Prompt.ask(
                "Configuration (blank for deploy.config.json)",
                default=configuration_name or "",
                show_default=bool(configuration_name),
                console=self.console,
            )

        secret = SecretBuffer(password)
        del password
        return Credentials(username.strip(), secret, configuration_name or None)
