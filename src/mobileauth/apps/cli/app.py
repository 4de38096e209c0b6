"""Command line front-end for the mobile authenticator."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer

from mobileauth.services.guard import (
    AuthenticationRequired,
    AuthenticatorLinker,
    ConfirmationError,
    FinalizeResult,
    GuardAccount,
    GuardError,
    GuardHttpClient,
    GuardSettings,
    LinkResult,
    RevocationScheme,
    SessionData,
    TimeAligner,
    refresh_access_token,
)
from mobileauth.services.guard.state import identity_path, list_identities, load_identity, save_identity
from mobileauth.services.guard.token_store import KeyringUnavailableError, restore_session_token, store_session_token

app = typer.Typer(help="Mobile authenticator: login codes, linking and confirmations.")
confirmations_app = typer.Typer(help="Pending confirmations (trades, market listings, ...).")
app.add_typer(confirmations_app, name="confirmations")


def _settings() -> GuardSettings:
    return GuardSettings.from_env()


def _services(settings: GuardSettings) -> tuple[GuardHttpClient, TimeAligner]:
    transport = GuardHttpClient(settings=settings)
    return transport, TimeAligner(transport, settings)


def _resolve_file(settings: GuardSettings, account: Optional[str]) -> Path:
    if account:
        return identity_path(settings.home, account)
    files = list_identities(settings.home)
    if len(files) != 1:
        raise typer.BadParameter("pass --account; {} authenticator files found in {}".format(len(files), settings.home))
    return files[0]


def _account(settings: GuardSettings, account: Optional[str]) -> tuple[GuardAccount, Path]:
    path = _resolve_file(settings, account)
    if not path.exists():
        typer.echo(f"no authenticator file at {path}")
        raise typer.Exit(1)
    identity = load_identity(path)
    transport, aligner = _services(settings)
    return GuardAccount(identity, transport, aligner, settings), path


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging.")):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command("code")
def cmd_code(account: Optional[str] = typer.Option(None, "--account", "-a", help="Account name of the authenticator file.")):
    """Print the current login code."""
    guard, _path = _account(_settings(), account)
    code = asyncio.run(guard.generate_code())
    if not code:
        typer.echo("no code produced; check the shared secret")
        raise typer.Exit(1)
    typer.echo(code)


@app.command("time")
def cmd_time():
    """Show the aligned service time and the local offset."""
    settings = _settings()
    _transport, aligner = _services(settings)
    now = asyncio.run(aligner.now())
    state = "aligned" if aligner.aligned else "unaligned"
    typer.echo(f"{now} offset={aligner.offset}s ({state})")


@app.command("link")
def cmd_link(
    steam_id: int = typer.Option(..., "--steam-id", help="Account id the access token belongs to."),
    access_token: str = typer.Option(..., "--access-token", help="Mobile app access token."),
    refresh_token: str = typer.Option("", "--refresh-token"),
    phone: Optional[str] = typer.Option(None, "--phone", help="Phone number to add when the account has none."),
    country: Optional[str] = typer.Option(None, "--country", help="Phone country code (defaults to the account country)."),
    use_keyring: bool = typer.Option(False, "--keyring", help="Keep the refresh token in the system keyring instead of the file."),
):
    """Link a new authenticator and save its secrets before finalization."""
    settings = _settings()
    session = SessionData(steam_id=steam_id, access_token=access_token, refresh_token=refresh_token)
    transport, aligner = _services(settings)
    linker = AuthenticatorLinker(session, transport, aligner, settings)
    linker.phone_number = phone
    linker.phone_country_code = country
    if use_keyring and refresh_token:
        store_session_token(session)
        session.refresh_token = ""

    async def _flow() -> LinkResult:
        while True:
            result = await linker.add_authenticator()
            if result is LinkResult.MUST_PROVIDE_PHONE_NUMBER:
                linker.phone_number = typer.prompt("Phone number (with country prefix)")
                continue
            if result is LinkResult.MUST_CONFIRM_EMAIL:
                typer.confirm(f"Confirm the email sent to {linker.confirmation_email_address}, then continue", abort=True)
                continue
            return result

    result = asyncio.run(_flow())
    if result is not LinkResult.AWAITING_FINALIZATION or linker.linked_identity is None:
        typer.echo(f"linking stopped: {result}")
        raise typer.Exit(1)

    identity = linker.linked_identity
    path = save_identity(settings.home, identity)
    typer.echo(f"saved {path}")
    typer.echo(f"revocation code: {identity.revocation_code} (write it down)")

    activation_code = typer.prompt("Activation code from SMS/email")
    finalize = asyncio.run(linker.finalize_add_authenticator(activation_code))
    if finalize is not FinalizeResult.SUCCESS:
        typer.echo(f"finalization failed: {finalize}")
        raise typer.Exit(1)
    save_identity(settings.home, identity)
    typer.echo("authenticator linked")


@app.command("deactivate")
def cmd_deactivate(
    account: Optional[str] = typer.Option(None, "--account", "-a"),
    remove: bool = typer.Option(False, "--remove", help="Remove the second factor entirely instead of returning to email codes."),
):
    """Remove the authenticator from the account."""
    guard, _path = _account(_settings(), account)
    scheme = RevocationScheme.REMOVE_COMPLETELY if remove else RevocationScheme.RETURN_TO_EMAIL
    if not asyncio.run(guard.deactivate(scheme)):
        typer.echo("deactivation failed")
        raise typer.Exit(1)
    typer.echo("authenticator removed")


@app.command("refresh")
def cmd_refresh(account: Optional[str] = typer.Option(None, "--account", "-a")):
    """Rotate the stored access token using the refresh token."""
    settings = _settings()
    guard, path = _account(settings, account)
    session = guard.identity.session
    from_keyring = False
    try:
        if not session.refresh_token:
            from_keyring = restore_session_token(session)
        asyncio.run(refresh_access_token(session, guard.transport, settings))
    except (GuardError, KeyringUnavailableError) as exc:
        typer.echo(str(exc))
        raise typer.Exit(1)
    if from_keyring:
        session.refresh_token = ""
    save_identity(path.parent, guard.identity)
    typer.echo("access token refreshed")


@confirmations_app.command("list")
def cmd_conf_list(account: Optional[str] = typer.Option(None, "--account", "-a")):
    guard, _path = _account(_settings(), account)
    try:
        items = asyncio.run(guard.confirmations().list_confirmations())
    except AuthenticationRequired:
        typer.echo("session expired; run 'mobileauth refresh'")
        raise typer.Exit(1)
    except ConfirmationError as exc:
        typer.echo(f"listing failed: {exc}")
        raise typer.Exit(1)
    if not items:
        typer.echo("no pending confirmations")
        return
    for item in items:
        summary = "; ".join(item.summary)
        typer.echo(f"{item.id}\t{item.type.name}\t{item.headline}\t{summary}")


def _decide(account: Optional[str], ids: list[str], approve: bool) -> None:
    guard, _path = _account(_settings(), account)
    gateway = guard.confirmations()

    async def _run() -> bool:
        # keys are single-use and only valid from a fresh listing
        pending = await gateway.list_confirmations()
        chosen = [c for c in pending if not ids or c.id in ids]
        missing = set(ids) - {c.id for c in chosen}
        if missing:
            raise typer.BadParameter("unknown confirmation id(s): " + ", ".join(sorted(missing)))
        if not chosen:
            typer.echo("no pending confirmations")
            return True
        if len(chosen) == 1:
            return await gateway.respond(chosen[0], approve)
        return await gateway.respond_many(chosen, approve)

    if not asyncio.run(_run()):
        typer.echo("request failed")
        raise typer.Exit(1)
    typer.echo("done")


@confirmations_app.command("accept")
def cmd_conf_accept(
    ids: Optional[list[str]] = typer.Argument(None, help="Confirmation ids; all pending when omitted."),
    account: Optional[str] = typer.Option(None, "--account", "-a"),
):
    _decide(account, ids or [], True)


@confirmations_app.command("deny")
def cmd_conf_deny(
    ids: Optional[list[str]] = typer.Argument(None, help="Confirmation ids; all pending when omitted."),
    account: Optional[str] = typer.Option(None, "--account", "-a"),
):
    _decide(account, ids or [], False)


if __name__ == "__main__":
    app()
