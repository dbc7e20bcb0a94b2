import logging
from pathlib import Path

import typer
from rich import print
from rich.markup import escape

from feed2blog.config.settings import ConfigError, Settings, load_settings
from feed2blog.db.database import init_db, make_engine
from feed2blog.services.ledger import Ledger
from feed2blog.services.work_queue import WorkQueue
from feed2blog.tools.lock import LockHeldError, RunLock
from feed2blog.tools.logging_setup import setup_logging
from feed2blog.workflows.run_cycle import build_pipeline, run_cycle
from feed2blog.workflows.scheduler import run_forever, run_once

logger = logging.getLogger("feed2blog")

app = typer.Typer(help="RSS -> OpenAI rewrite -> Blogger autoposter")


def _bootstrap(require_credentials: bool = True, mode: str | None = None) -> Settings:
    try:
        s = load_settings()
    except ConfigError as e:
        print(f"[bold red]Config error[/bold red]: {escape(str(e))}")
        raise SystemExit(1)
    if mode:
        s.mode = mode.lower()
    setup_logging(s)
    if require_credentials:
        try:
            s.require_complete()
        except ConfigError as e:
            logger.error("%s", e)
            print(f"[bold red]Config error[/bold red]: {escape(str(e))}")
            raise SystemExit(1)
    return s


@app.command()
def run(
    mode: str = typer.Option(None, help="'once' for a single cycle, 'cron' to keep running. Defaults to MODE."),
):
    """Process the queue: one cycle, or one cycle per schedule tick."""
    s = _bootstrap(mode=mode)

    engine = make_engine(s.database_url)
    init_db(engine)
    pipeline = build_pipeline(s, engine)

    logger.info(
        "Starting feed2blog mode=%s model=%s feed=%s db=%s schedule=%s",
        s.mode, s.openai_model, s.feed_url, s.db_path, s.schedule,
    )

    try:
        with RunLock(Path(s.db_path).parent / "run.lock") as lock:
            if s.mode == "once":
                run_once(lambda: run_cycle(pipeline))
                logger.info("Finished single run. Exiting.")
                return

            run_forever(lambda: run_cycle(pipeline), s.schedule, heartbeat=lock.refresh)
    except LockHeldError as e:
        print(f"[bold red]Run refused[/bold red]: {escape(str(e))}")
        raise SystemExit(1)
    except ConfigError as e:
        logger.error("%s", e)
        print(f"[bold red]Config error[/bold red]: {escape(str(e))}")
        raise SystemExit(1)


@app.command()
def doctor():
    """Check config + DB connectivity."""
    s = _bootstrap()
    print("[bold green]Config loaded[/bold green]")
    print("Feed:", s.feed_url, "| Model:", s.openai_model, "| Blog:", s.blog_id)
    print("Mode:", s.mode, "| Schedule:", s.schedule, "| Fill cap:", s.max_queue_fill)
    engine = make_engine(s.database_url)
    init_db(engine)
    print("[bold green]DB OK[/bold green]", s.db_path)
    print("Queued:", WorkQueue(engine).size(), "| Posted:", Ledger(engine).count())


@app.command()
def status(limit: int = typer.Option(5, help="How many queued / posted rows to list.")):
    """Show queue and ledger contents."""
    s = _bootstrap(require_credentials=False)
    engine = make_engine(s.database_url)
    init_db(engine)
    queue = WorkQueue(engine)
    ledger = Ledger(engine)

    print(f"[bold]Queue[/bold]: {queue.size()} item(s)")
    for it in queue.list_items(limit):
        print(f"  {it.id}. {escape(it.title)}  [dim]{escape(it.link)}[/dim]")

    print(f"[bold]Posted[/bold]: {ledger.count()} item(s)")
    for rec in ledger.recent(limit):
        print(f"  - {escape(rec.title)}  [dim]{escape(rec.post_url or rec.link)}[/dim]")


if __name__ == "__main__":
    app()
