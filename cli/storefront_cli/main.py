from __future__ import annotations

import typer

from .commands import auth_cmd, products_cmd
from .logging_ import setup_logging


def _build_app() -> typer.Typer:
    app = typer.Typer(
        name="storefront",
        help="storefront CLI",
        no_args_is_help=True,
    )
    app.add_typer(auth_cmd.app, name="auth")
    app.add_typer(products_cmd.app, name="products")

    @app.callback()
    def _main(
            verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose logs."),
    ):
        setup_logging(verbose)

    return app


app = _build_app()


def main() -> None:
    app()


if __name__ == "__main__":
    main()
