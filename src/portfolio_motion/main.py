"""
main.py - demo entry point
--------------------------

Responsible for:
- loading configuration and building the page's stagger trees
- wiring engine, state machine and form controller
- revealing the page once and driving one contact form submission
- tearing everything down cleanly
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from portfolio_motion.engine.scheduler import AsyncioScheduler
from portfolio_motion.engine.stagger_engine import StaggerEngine
from portfolio_motion.errors import ConfigurationError, SubmissionFault
from portfolio_motion.layouts.sections import build_page
from portfolio_motion.lifecycle.task_registry import TaskRegistry, cancel_leftover_tasks
from portfolio_motion.managers.config_manager import ConfigManager
from portfolio_motion.models.enums import LogCategory, LogLevel
from portfolio_motion.models.submission import FormPayload, SubmitAck
from portfolio_motion.services.contact_form import ContactFormController
from portfolio_motion.services.event_bus import EventBus
from portfolio_motion.services.middleware import log_middleware
from portfolio_motion.services.render_sinks import AnimatedStyleSink, ConsoleStyleSink
from portfolio_motion.services.submission_machine import SubmissionStateMachine
from portfolio_motion.services.submit_capability import CallableSubmitCapability, EmailJSSubmitCapability
from portfolio_motion.utils.logger import configure_logger, get_logger

log = get_logger().for_category(LogCategory.SYSTEM)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reveal the portfolio page and send one contact message")
    parser.add_argument("--config", help="Path to config.yaml (defaults to the packaged one)")
    parser.add_argument("--live", action="store_true", help="Send through EmailJS instead of the local stub")
    parser.add_argument("--fail", action="store_true", help="Make the local stub transport fail")
    parser.add_argument("--frames", action="store_true", help="Print every tween frame")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    parser.add_argument("--name", default="A")
    parser.add_argument("--email", default="a@x.com")
    parser.add_argument("--message", default="hi")
    return parser.parse_args(argv)


def _stub_capability(fail: bool) -> CallableSubmitCapability:
    async def send(payload: FormPayload) -> SubmitAck:
        await asyncio.sleep(0.4)
        if fail:
            raise SubmissionFault("Stub transport configured to fail")
        log.info("Stub transport delivered message", fields=sorted(payload))
        return SubmitAck()

    return CallableSubmitCapability(send)


async def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    configure_logger(LogLevel.DEBUG if args.debug else LogLevel.INFO)

    log.info("Loading configuration...")
    config = ConfigManager(config_path=args.config)
    config.load()
    motion = config.motion_config()
    fields = config.form_fields()

    if args.live:
        capability = EmailJSSubmitCapability(config.transport_config())
    else:
        capability = _stub_capability(args.fail)

    event_bus = EventBus()
    if args.debug:
        event_bus.add_middleware(log_middleware)

    if args.frames:
        sink = AnimatedStyleSink(
            lambda path, frame: print(f"  {path:<48} opacity={frame.opacity:.2f} y={frame.translate_y:+.1f}"),
            steps=motion.tween_steps,
        )
    else:
        sink = ConsoleStyleSink()

    scheduler = AsyncioScheduler()
    engine = StaggerEngine(scheduler, sink=sink, event_bus=event_bus)
    layout = build_page(motion, config.page_content(), fields)

    machine = SubmissionStateMachine(
        capability,
        scheduler,
        reset_delay_ms=motion.reset_delay_ms,
        messages=motion.messages,
        event_bus=event_bus,
    )
    form = ContactFormController(machine, engine, layout.contact.status, fields)

    log.info("Revealing page...")
    engine.reveal(layout.root)
    await asyncio.sleep(1.5)

    for name, value in (("name", args.name), ("email", args.email), ("message", args.message)):
        if name in form.values:
            form.set_value(name, value)

    task = form.submit()
    log.info(f"Button: {form.button_label}", status=machine.status.name, message=machine.message)
    if task is not None:
        await task
    log.info("Submission finished", status=machine.status.name, message=machine.message)

    # Let the reset timer return the form to idle
    await asyncio.sleep(motion.reset_delay_ms / 1000 + 0.5)
    log.info("Form settled", status=machine.status.name, status_scope_mounted=layout.contact.status.mounted)

    form.close()
    if isinstance(sink, AnimatedStyleSink):
        await sink.close()
    if isinstance(capability, EmailJSSubmitCapability):
        await capability.aclose()

    await cancel_leftover_tasks()
    log.info(TaskRegistry.instance().summary())
    return 0


def run() -> None:
    try:
        code = asyncio.run(main())
    except KeyboardInterrupt:
        log.info("Keyboard interrupt received")
        code = 0
    except ConfigurationError as e:
        log.error(f"Configuration error: {e}")
        code = 2
    sys.exit(code)


if __name__ == "__main__":
    run()
