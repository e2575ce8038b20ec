#!/usr/bin/env python3
"""
sessionctl.py - CLI for the concurrency session demos (single-file edition)

Features:
- ticker demo: periodic producer/consumer racing a fixed timeout
- workers demo: fixed fan-out of worker threads joined through a WaitGroup
- counter demo: N threads incrementing a lock-guarded shared counter
- calc / convert: small calculator and temperature converter
- interactive menu over the demos
- simple config persisted to config.json
"""

import os
import json
import threading
import time
from datetime import datetime, timezone
import click
from golang import chan, select, sync
from golang import time as gotime

CONFIG_FILE = "config.json"

DEFAULT_CONFIG = {
    "tick_interval": 0.5,
    "timeout": 10,
    "workers": 5,
    "work_seconds": 1,
    "increments": 1000,
}

# Shared by the CLI options and `config set`, so both accept the same values.
CONFIG_TYPES = {
    "tick_interval": click.FloatRange(min=0, min_open=True),
    "timeout": click.FloatRange(min=0, min_open=True),
    "workers": click.IntRange(min=0),
    "work_seconds": click.FloatRange(min=0),
    "increments": click.IntRange(min=0),
}


def now_iso():
    return datetime.now(timezone.utc).isoformat()


def load_config():
    if not os.path.exists(CONFIG_FILE):
        cfg = dict(DEFAULT_CONFIG)
        save_config(cfg)
        return cfg
    with open(CONFIG_FILE, "r") as f:
        cfg = json.load(f)
    # keys added after the file was written
    for key, value in DEFAULT_CONFIG.items():
        cfg.setdefault(key, value)
    return cfg


def save_config(cfg):
    with open(CONFIG_FILE, "w") as f:
        json.dump(cfg, f, indent=2)


def check_config_value(key, value):
    """Convert `value` with the type registered for `key`; exit 1 if it does not fit."""
    try:
        return CONFIG_TYPES[key].convert(str(value), None, None)
    except click.BadParameter as e:
        click.echo(f"Error: invalid value for {key}: {e.message}", err=True)
        raise SystemExit(1)


def config_value(key, value=None):
    """Return `value` when given on the command line, else the checked config entry."""
    if value is not None:
        return value
    return check_config_value(key, load_config()[key])


# ---------------- Errors ----------------
class SessionError(ValueError):
    """Base class for calculator and converter input errors."""


class InvalidInputError(SessionError):
    pass


class DivideByZeroError(SessionError):
    pass


class InvalidOperatorError(SessionError):
    pass


class InvalidUnitError(SessionError):
    pass


# ---------------- Synchronization ----------------
class SharedCounter:
    """Integer cell bundled with the lock that guards it."""

    def __init__(self):
        self._value = 0
        self._lock = threading.Lock()

    @property
    def value(self):
        with self._lock:
            return self._value

    def increment(self, out=click.echo):
        with self._lock:
            self._value += 1
            out(f"Counter: {self._value}")
            return self._value


def spawn(target, args=(), name=None):
    t = threading.Thread(target=target, args=args, name=name, daemon=True)
    t.start()
    return t


def join_all(threads):
    for t in threads:
        t.join()


# ---------------- Ticker demo ----------------
def send_data(ch, done):
    """Hand one message to the consumer, or give up once `done` is closed.

    Returns True if the consumer took the message.
    """
    msg = f"New Message - Time: {now_iso()}"
    _, _rx = select(
        (ch.send, msg),     # 0
        done.recv,          # 1
    )
    return _ == 0


def timer_program(interval, timeout, out=click.echo):
    """Spawn a sender per tick and print messages until `timeout` seconds pass.

    The loop selects over the ticker, the unbuffered message channel and the
    timeout. A send completes only when the loop receives it, and `done` is
    closed as soon as the loop stops, so no message is handed over after the
    timeout; blocked senders return without sending. A tick or message picked
    by select after the deadline is discarded unprinted.
    """
    if interval <= 0:
        raise ValueError("interval must be positive")
    if timeout <= 0:
        raise ValueError("timeout must be positive")

    ch = chan()
    done = chan()
    senders = []
    ticks = produced = consumed = 0

    deadline = time.monotonic() + timeout
    stop = gotime.after(timeout)
    ticker = gotime.Ticker(interval)
    try:
        while True:
            _, _rx = select(
                ticker.c.recv,  # 0
                ch.recv,        # 1
                stop.recv,      # 2
            )
            if _ == 1:
                produced += 1
            if _ == 2 or time.monotonic() >= deadline:
                break
            if _ == 0:
                ticks += 1
                senders.append(spawn(send_data, args=(ch, done), name=f"sender-{ticks}"))
            else:
                consumed += 1
                out(_rx)
    finally:
        done.close()
        ticker.stop()
        join_all(senders)

    out("The counter has been stopped.")
    return {
        "ticks": ticks,
        "produced": produced,
        "consumed": consumed,
        "discarded": produced - consumed,
        "dropped": ticks - produced,
    }


# ---------------- Workers demo ----------------
def worker(worker_id, wg, work_seconds, out=click.echo):
    try:
        out(f"Worker {worker_id} starting")
        time.sleep(work_seconds)  # simulate work
        out(f"Worker {worker_id} done")
    finally:
        wg.done()


def multiple_worker_program(count, work_seconds=1, out=click.echo):
    """Fan out `count` workers and block until every one of them is done."""
    if count < 0:
        raise ValueError("worker count cannot be negative")
    if work_seconds < 0:
        raise ValueError("work_seconds cannot be negative")

    wg = sync.WaitGroup()
    threads = []
    for i in range(1, count + 1):
        wg.add(1)
        threads.append(spawn(worker, args=(i, wg, work_seconds, out), name=f"worker-{i}"))
    wg.wait()
    join_all(threads)
    out("All workers completed")
    return count


# ---------------- Counter demo ----------------
def increment(counter, wg, out=click.echo):
    try:
        counter.increment(out)
    finally:
        wg.done()


def counter_program(n, out=click.echo):
    """Increment a shared counter from `n` threads and print the final value."""
    if n < 0:
        raise ValueError("increment count cannot be negative")

    counter = SharedCounter()
    wg = sync.WaitGroup()
    threads = []
    for i in range(n):
        wg.add(1)
        threads.append(spawn(increment, args=(counter, wg, out), name=f"increment-{i}"))
    wg.wait()
    join_all(threads)
    final = counter.value
    out(f"Final Counter: {final}")
    return final


# ---------------- Calculator / Converter ----------------
def perform_operation(a, b, operator):
    if a is None or b is None:
        raise InvalidInputError("inputs cannot be empty")
    if operator == "+":
        return a + b
    if operator == "-":
        return a - b
    if operator == "*":
        return a * b
    if operator == "/":
        if b == 0:
            raise DivideByZeroError("division by zero is not allowed")
        return a / b
    raise InvalidOperatorError(f"invalid operator: {operator}")


def convert_temperature(value, unit):
    """Celsius -> Fahrenheit for unit "C", Fahrenheit -> Celsius for "F"."""
    if value is None:
        raise InvalidInputError("temperature value cannot be empty")
    if unit == "C":
        return value * 9 / 5 + 32
    if unit == "F":
        return (value - 32) * 5 / 9
    raise InvalidUnitError(f"invalid unit: {unit} (must be 'C' or 'F')")


# ---------------- CLI ----------------
@click.group()
def cli():
    """sessionctl - Concurrency session demos"""
    pass


@cli.command()
@click.option("--interval", type=CONFIG_TYPES["tick_interval"], default=None,
              help="Seconds between ticks")
@click.option("--timeout", type=CONFIG_TYPES["timeout"], default=None,
              help="Seconds before the demo stops")
def ticker(interval, timeout):
    """Spawn a sender on every tick and print messages until the timeout."""
    timer_program(
        config_value("tick_interval", interval),
        config_value("timeout", timeout),
    )


@cli.command()
@click.option("--count", type=CONFIG_TYPES["workers"], default=None, help="Number of workers")
@click.option("--work-seconds", type=CONFIG_TYPES["work_seconds"], default=None,
              help="Simulated work per worker")
def workers(count, work_seconds):
    """Run a fixed pool of workers and wait for all of them."""
    multiple_worker_program(
        config_value("workers", count),
        config_value("work_seconds", work_seconds),
    )


@cli.command()
@click.option("--increments", type=CONFIG_TYPES["increments"], default=None,
              help="Number of concurrent increments")
def counter(increments):
    """Increment a mutex-guarded counter from many threads."""
    counter_program(config_value("increments", increments))


MENU = """
1. Ticker
2. Workers
3. Counter
4. Exit"""


@cli.command()
def menu():
    """Pick demos from a numbered menu until Exit."""
    while True:
        click.echo(MENU)
        choice = click.prompt("Choose an option", type=click.IntRange(1, 4))
        if choice == 1:
            timer_program(config_value("tick_interval"), config_value("timeout"))
        elif choice == 2:
            multiple_worker_program(config_value("workers"), config_value("work_seconds"))
        elif choice == 3:
            counter_program(config_value("increments"))
        else:
            click.echo("Goodbye!")
            return


@cli.command()
@click.argument("a", type=float)
@click.argument("operator")
@click.argument("b", type=float)
def calc(a, operator, b):
    """Apply OPERATOR (+ - * /) to A and B."""
    try:
        result = perform_operation(a, b, operator)
    except SessionError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    click.echo(f"Result: {result:.2f}")


@cli.command()
@click.argument("value", type=float)
@click.argument("unit")
def convert(value, unit):
    """Convert VALUE from UNIT (C or F) to the other scale."""
    try:
        result = convert_temperature(value, unit)
    except SessionError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    other = "F" if unit == "C" else "C"
    click.echo(f"{value:.2f}°{unit} is {result:.2f}°{other}")


@cli.group()
def config():
    """Configuration management"""
    pass


@config.command("set")
@click.argument("key")
@click.argument("value")
def config_set(key, value):
    cfg = load_config()
    if key in CONFIG_TYPES:
        v = check_config_value(key, value)
        cfg[key] = v
        save_config(cfg)
        click.echo(f"Updated {key} = {v}")
    else:
        click.echo(f"Unknown config key: {key}. Known keys: {list(CONFIG_TYPES)}")


@config.command("show")
def config_show():
    click.echo(json.dumps(load_config(), indent=2))


if __name__ == "__main__":
    cli()
