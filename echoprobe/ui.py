from rich.console import Console
from rich.table import Table

console = Console()


class ProbeUI:
    def __init__(self, console_=None):
        self.console = console_ or console

    def display_welcome(self):
        self.console.rule("[bold red]ECHOPROBE - Echo Honeypot & Back-Scanner[/bold red]")

    def display_config(self, config):
        """
        Summarizes the loaded configuration before anything is bound.
        """
        table = Table(title="Configuration", show_header=True, header_style="bold magenta")
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="white")

        mode = "[red]ACTIVE[/red] (scanning peers)" if config.active else "[green]DORMANT[/green]"
        table.add_row("Listen ports", ", ".join(config.ports))
        table.add_row("Bind host", config.bind_host)
        table.add_row("Mode", mode)
        table.add_row("Scan ports", ", ".join(config.scan_ports) or "N/A")
        table.add_row("Inactivity timeout", f"{config.connection_timeout}s")
        table.add_row("Log directory", str(config.log_dir))
        self.console.print(table)

    def display_listeners(self, bound, failed):
        """
        Shows which ports are listening and which could not be bound.
        `bound` holds ListenerHandles, `failed` maps port -> reason.
        """
        table = Table(title="Listeners", show_header=True, header_style="bold magenta")
        table.add_column("Port", style="cyan", justify="right")
        table.add_column("State")
        table.add_column("Detail", style="dim")

        rows = [(h.port, "[green]LISTENING[/green]", f"requested {h.requested_port}" if h.requested_port != h.port else "")
                for h in bound]
        rows += [(port, "[red]FAILED[/red]", reason) for port, reason in failed.items()]
        for port, state, detail in sorted(rows, key=lambda r: r[0]):
            table.add_row(str(port), state, detail)

        self.console.print(table)
        if not bound:
            self.show_message("No listeners could be bound; waiting for shutdown.", style="bold yellow")

    def display_shutdown(self, pending):
        if pending:
            self.console.print(f"[yellow]{pending} connection/scan task(s) still running at shutdown.[/yellow]")
        self.console.print("[dim]Shutdown complete.[/dim]")

    def show_message(self, msg, style="bold red"):
        self.console.print(f"[{style}]{msg}[/{style}]")
