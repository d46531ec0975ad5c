# backend/Auth/manage_users.py
import getpass

import typer
from sqlmodel import Session, select
from tabulate import tabulate

from Storage.database import engine, init_db
from Auth.models import Role, User
from Auth.users import DuplicateUserError, register

cli = typer.Typer(help="Dashboard gebruikersbeheer")


@cli.callback()
def _setup():
    init_db()


@cli.command()
def add(
    username: str = typer.Argument(...),
    role: Role = typer.Option(Role.viewer, help="Rol van de gebruiker"),
):
    """Voeg een nieuwe gebruiker toe."""
    pwd = getpass.getpass("Password: ")
    if not pwd:
        typer.echo("❌ Leeg wachtwoord"); raise typer.Exit(1)
    with Session(engine) as s:
        try:
            register(s, username, pwd, role)
        except DuplicateUserError:
            typer.echo("❌ Bestaat al"); raise typer.Exit(1)
    typer.echo("✅ Aangemaakt")


@cli.command("list")
def list_users(
    full: bool = typer.Option(False, help="Toon hashes erbij"),
    show_role: bool = typer.Option(True, help="Toon de role-kolom"),
):
    """Lijst alle gebruikers (id, username, role, optioneel hash)."""
    cols = [User.id, User.username]
    headers = ["id", "username"]

    if show_role:
        cols.append(User.role)
        headers.append("role")

    if full:
        cols.append(User.hashed_password)
        headers.append("hashed_password")

    with Session(engine) as s:
        rows = s.exec(select(*cols)).all()

    rows = [[c.value if isinstance(c, Role) else c for c in row] for row in rows]
    typer.echo(tabulate(rows, headers=headers))


if __name__ == "__main__":
    cli()
