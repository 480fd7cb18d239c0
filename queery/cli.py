from __future__ import annotations
import argparse, logging, time
import uvicorn
from queery.config import settings, Settings
from queery.errors import EmptyInputError
from queery.ingest import Ingestor
from queery.periods import TimePeriod
from queery.query import ChartService
from queery.seed import seed_messages
from queery.storage import open_store

def _settings(args) -> Settings:
    return Settings(**{
        **settings.model_dump(),
        "store_backend": args.store,
        "database_url": args.database_url,
        "redis_url": args.redis_url,
        "resolution_seconds": args.resolution_seconds,
    })

def cmd_bot(args):
    from queery.bot import run_bot
    s = _settings(args)
    store = open_store(s)
    try:
        run_bot(store, s)
    finally:
        store.close()

def cmd_api(args):
    from queery.api import create_app
    s = _settings(args)
    store = open_store(s)
    try:
        uvicorn.run(create_app(store, s.resolution_seconds), host=args.host, port=args.port, reload=False)
    finally:
        store.close()

def cmd_seed(args):
    s = _settings(args)
    store = open_store(s)
    try:
        written = seed_messages(
            Ingestor(store, s.resolution_seconds),
            stream_ids=args.stream_id,
            messages=args.messages,
            lookback_seconds=args.lookback_seconds,
            hot_stream_prob=args.hot_stream_prob,
        )
        print({"seeded": written})
    finally:
        store.close()

def cmd_chart(args):
    s = _settings(args)
    store = open_store(s)
    try:
        period = TimePeriod.parse(args.period)
        png = ChartService(store, s.resolution_seconds).build_chart(
            args.stream_id, period, int(time.time()), args.label or str(args.stream_id))
    except EmptyInputError as exc:
        raise SystemExit(str(exc))
    finally:
        store.close()
    with open(args.out, "wb") as f:
        f.write(png)
    print({"written": args.out, "bytes": len(png)})

def main():
    p = argparse.ArgumentParser(prog="queery")
    p.add_argument("--store", default=settings.store_backend, choices=["postgres", "sql", "redis", "memory"])
    p.add_argument("--database-url", default=settings.database_url)
    p.add_argument("--redis-url", default=settings.redis_url)
    p.add_argument("--resolution-seconds", type=int, default=settings.resolution_seconds)
    p.add_argument("--log-level", default=settings.log_level)
    sub = p.add_subparsers(dest="cmd", required=True)

    b = sub.add_parser("bot")
    b.set_defaults(fn=cmd_bot)

    a = sub.add_parser("api")
    a.add_argument("--host", default="0.0.0.0")
    a.add_argument("--port", type=int, default=8000)
    a.set_defaults(fn=cmd_api)

    sd = sub.add_parser("seed")
    sd.add_argument("--stream-id", type=int, action="append", required=True, help="repeatable; the first is the hot stream")
    sd.add_argument("--messages", type=int, default=2000)
    sd.add_argument("--lookback-seconds", type=int, default=3600)
    sd.add_argument("--hot-stream-prob", type=float, default=0.2)
    sd.set_defaults(fn=cmd_seed)

    c = sub.add_parser("chart")
    c.add_argument("--stream-id", type=int, required=True)
    c.add_argument("--period", default="hour", choices=[tp.value for tp in TimePeriod])
    c.add_argument("--label")
    c.add_argument("--out", default="logs.png")
    c.set_defaults(fn=cmd_chart)

    args = p.parse_args()
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    args.fn(args)

if __name__ == "__main__":
    main()
