def run(argv: list[str]) -> int:
    import json
    from pathlib import Path
    from typing import NoReturn

    import typer

    from basis_cli import __version__
    from basis_hub.config import ConfigError, load_config

    app = typer.Typer(
        add_completion=False,
        help="BASIS functions local tooling",
        invoke_without_command=True,
        no_args_is_help=True,
    )

    def _die(msg: str, code: int = 2) -> NoReturn:
        typer.echo(f"ERROR: {msg}", err=True)
        raise typer.Exit(code=code)

    @app.callback()
    def _root(
        ctx: typer.Context,
        env_file: str | None = typer.Option(None, "--env-file", help="dotenv file to load (default: .env.local if present)"),
        version: bool = typer.Option(False, "--version", help="Print version and exit"),
    ) -> None:
        if version:
            typer.echo(__version__)
            raise typer.Exit(code=0)

        from dotenv import load_dotenv

        path = Path(env_file) if env_file else Path(".env.local")
        if path.exists():
            load_dotenv(path)
        elif env_file:
            _die(f"env file not found: {env_file}")
        ctx.obj = {"env_file": str(path)}

    @app.command("serve")
    def serve(
        host: str = typer.Option("127.0.0.1", "--host"),
        port: int = typer.Option(8000, "--port"),
        log_level: str = typer.Option("info", "--log-level"),
    ) -> None:
        """Serve every function under /functions/v1/<name> with uvicorn."""
        import uvicorn

        from basis_cli.local_app import build_app

        uvicorn.run(build_app(), host=host, port=port, log_level=log_level)

    @app.command("invoke")
    def invoke(
        name: str = typer.Argument(..., help="Function name, e.g. exercises"),
        data: str | None = typer.Option(None, "--data", "-d", help="JSON request body"),
        method: str = typer.Option("POST", "--method", "-X"),
    ) -> None:
        """Call one handler with a synthetic proxy event and print its response."""
        from basis_cli.local_app import build_event, load_handler

        if data is not None:
            try:
                json.loads(data)
            except json.JSONDecodeError as e:
                _die(f"--data is not valid JSON: {e}")
        try:
            fn = load_handler(name)
        except KeyError:
            _die(f"unknown function: {name}")

        event = build_event(method, f"/functions/v1/{name}", {}, {}, (data or "").encode("utf-8"))
        result = fn(event, None)
        status = int(result.get("statusCode", 200))
        body = result.get("body") or ""
        try:
            body = json.dumps(json.loads(body), indent=2)
        except json.JSONDecodeError:
            pass
        typer.echo(f"HTTP {status}", err=True)
        typer.echo(body)
        if status >= 400:
            raise typer.Exit(code=1)

    @app.command("manifest")
    def manifest(base_url: str | None = typer.Option(None, "--base-url")) -> None:
        """Print the deployment manifest."""
        from basis_hub.manifest import build_manifest

        cfg = load_config(require_db=False)
        typer.echo(json.dumps(build_manifest(base_url or cfg.functions_base_url), indent=2))

    @app.command("init-db")
    def init_db(
        sql_file: str | None = typer.Option(None, "--sql-file", help="Apply only this file"),
        dry_run: bool = typer.Option(False, "--dry-run", help="Print statements, do not execute"),
    ) -> None:
        """Apply sql/*.sql through the RDS Data API (DB_* env vars)."""
        import logging

        from basis_cli.db import apply_sql, list_migrations
        from basis_hub.logging_utils import configure_logging
        from basis_hub.rds_data import RowStore

        configure_logging()
        paths = [Path(sql_file)] if sql_file else list_migrations()
        if not paths:
            _die("no SQL migrations found under sql/")

        if dry_run:
            n = apply_sql(None, paths, dry_run=True)
            typer.echo(f"[dry-run] {n} statements")
            return

        store = RowStore.from_config(load_config())
        n = apply_sql(store.data, paths)
        logging.getLogger(__name__).info("DB init complete")
        typer.echo(f"Applied {n} statements")

    # Execute without letting Click `sys.exit()`.
    command = typer.main.get_command(app)
    try:
        rv = command.main(args=argv, prog_name="basis", standalone_mode=False)
        if isinstance(rv, int):
            return int(rv)
        return 0
    except ConfigError as e:
        typer.echo(f"ERROR: {e}", err=True)
        return 2
    except SystemExit as e:  # pragma: no cover
        return int(e.code or 0)
