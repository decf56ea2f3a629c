from __future__ import annotations

import asyncio
import json
from typing import Optional

import typer

from homedash.app import Dashboard, build_dashboard
from homedash.core.config import get_settings
from homedash.core.logger import configure_logging
from homedash.core.notifications import Notification
from homedash.runtime.timer import TimerEngine, TimerRunner
from homedash.state.app_state import WIDGET_LABELS


cli = typer.Typer(name="homedash", help="CLI du tableau de bord personnel")
widgets_cli = typer.Typer(help="Widgets affichés")
commands_cli = typer.Typer(help="Palette de commandes")
credential_cli = typer.Typer(help="Clé de l'assistant")

cli.add_typer(widgets_cli, name="widgets")
cli.add_typer(commands_cli, name="commands")
cli.add_typer(credential_cli, name="credential")


class EchoNotificationSink:
    """Affiche les notifications sur la sortie standard."""

    def notify(self, notification: Notification) -> None:
        typer.echo(f"[{notification.level}] {notification.title}: {notification.message}")


def _dashboard() -> Dashboard:
    settings = get_settings()
    configure_logging(settings)
    return build_dashboard(settings, notifications=EchoNotificationSink(), open_url=typer.launch)


def _echo_json(payload: object) -> None:
    typer.echo(json.dumps(payload, ensure_ascii=False))


@cli.command()
def theme(value: Optional[str] = typer.Argument(None, help="light ou dark")) -> None:
    """Afficher ou changer le thème."""
    dash = _dashboard()
    if value is not None:
        try:
            dash.state.set_theme(value)
        except ValueError as exc:
            typer.echo(str(exc))
            raise typer.Exit(code=1)
    _echo_json({"theme": dash.state.theme})


@widgets_cli.command("list")
def widgets_list() -> None:
    dash = _dashboard()
    rows = [{"name": row.name, "label": row.label, "enabled": row.enabled} for row in dash.settings_panel.rows()]
    _echo_json({"widgets": rows})


@widgets_cli.command("toggle")
def widgets_toggle(name: str) -> None:
    if name not in WIDGET_LABELS:
        typer.echo(f"Widget inconnu: {name}")
        raise typer.Exit(code=1)
    dash = _dashboard()
    dash.state.toggle_widget(name)
    _echo_json({name: dash.state.is_enabled(name)})


@commands_cli.command("search")
def commands_search(query: str = typer.Argument("", help="Texte recherché")) -> None:
    dash = _dashboard()
    groups = [
        {"category": group.category, "commands": [{"id": c.id, "label": c.label} for c in group.commands]}
        for group in dash.registry.search(query)
    ]
    _echo_json({"groups": groups})


@commands_cli.command("run")
def commands_run(command_id: str) -> None:
    dash = _dashboard()
    if command_id not in dash.registry:
        typer.echo(f"Commande inconnue: {command_id}")
        raise typer.Exit(code=1)
    dash.palette.open()
    dash.palette.execute(command_id)
    _echo_json({"executed": command_id, "theme": dash.state.theme, "enabledWidgets": dash.state.enabled_widgets})


@credential_cli.command("set")
def credential_set(value: str) -> None:
    dash = _dashboard()
    if not dash.chat.set_credential(value):
        typer.echo("Clé vide ignorée.")
        raise typer.Exit(code=1)
    typer.echo("Clé enregistrée.")


@cli.command()
def ask(text: str) -> None:
    """Poser une question à l'assistant (un tour)."""

    async def _run() -> int:
        dash = _dashboard()
        try:
            reply = await dash.chat.submit(text)
        finally:
            await dash.aclose()
        if reply is None:
            return 1
        typer.echo(reply.content)
        return 0

    code = asyncio.run(_run())
    if code:
        raise typer.Exit(code=code)


@cli.command()
def background(refresh: bool = typer.Option(False, "--refresh", help="Ignorer le cache du jour")) -> None:
    """Afficher l'URL du fond d'écran du jour."""

    async def _run() -> str:
        dash = _dashboard()
        try:
            if refresh:
                dash.background.invalidate()
            return await dash.background.fetch()
        finally:
            await dash.aclose()

    url = asyncio.run(_run())
    _echo_json({"background": url})


@cli.command()
def timer(
    cycles: int = typer.Option(1, "--cycles", help="Nombre de phases à parcourir"),
    work: Optional[int] = typer.Option(None, "--work", help="Durée de travail (s)"),
    rest: Optional[int] = typer.Option(None, "--break", help="Durée de pause (s)"),
) -> None:
    """Lancer le minuteur de concentration."""
    settings = get_settings()
    configure_logging(settings)

    async def _run() -> None:
        done = asyncio.Event()
        completed = 0

        class _Sink(EchoNotificationSink):
            def notify(self, notification: Notification) -> None:
                nonlocal completed
                super().notify(notification)
                completed += 1
                if completed >= cycles:
                    done.set()

        engine = TimerEngine(
            work_seconds=work or settings.timer_work_seconds,
            break_seconds=rest or settings.timer_break_seconds,
            notifications=_Sink(),
            pause_on_phase_end=settings.timer_pause_on_phase_end,
        )
        runner = TimerRunner(engine)
        runner.toggle()
        try:
            while not done.is_set() and runner.running:
                typer.echo(f"{engine.phase.value} {engine.formatted}")
                await asyncio.sleep(1)
        finally:
            await runner.close()

    asyncio.run(_run())


if __name__ == "__main__":
    cli()
