import argparse
import asyncio
import os
import sys

from preview.compiler import transform_source
from preview.config import CONFIG_FILENAME, load_config, write_default_config
from preview.controller import LifecycleController, PreviewState
from preview.errors import ConfigError, PreviewError
from preview.log import log, set_verbose
from preview.registry import default_registry
from preview.render import RenderHost


def read_source(filepath):
    if filepath is None or filepath == "-":
        # Read from stdin
        return sys.stdin.read(), "<stdin>"
    if not os.path.exists(filepath):
        print(f"Error: File '{filepath}' not found.", file=sys.stderr)
        sys.exit(1)
    with open(filepath, 'r') as f:
        return f.read(), filepath


def load_settings():
    try:
        config = load_config()
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    return config, default_registry(config.binding_sets, strict=config.strict_registry)


def emit(html, out=None):
    if out:
        with open(out, 'w') as f:
            f.write(html + "\n")
    else:
        print(html)


async def render_once(source, registry, config=None):
    """Compile and mount one source text; returns (html, final state)."""
    controller = LifecycleController(registry, config=config)
    host = RenderHost(controller)
    try:
        controller.set_source(source)
        await controller.wait_idle()
        html = host.html()
        return html, controller.state
    finally:
        host.close()
        controller.dispose()


async def watch(filepath, registry, config, out=None, iterations=None):
    """Re-render filepath every time its modification time changes."""
    controller = LifecycleController(registry, config=config)
    host = RenderHost(controller)
    last_mtime = None
    count = 0
    try:
        while iterations is None or count < iterations:
            count += 1
            try:
                mtime = os.path.getmtime(filepath)
            except OSError:
                mtime = None
            if mtime is not None and mtime != last_mtime:
                last_mtime = mtime
                with open(filepath, 'r') as f:
                    controller.set_source(f.read())
                await controller.wait_idle()
                emit(host.html(), out)
                log(f"Rendered {filepath} (version {controller.version}, {controller.state.value})")
            await asyncio.sleep(config.poll_interval)
    finally:
        host.close()
        controller.dispose()


def cmd_compile(args):
    source_code, filepath = read_source(args.filename)
    config, _ = load_settings()
    try:
        generated = transform_source(source_code, pragma=config.pragma,
                                     pragma_frag=config.pragma_frag, filename=filepath)
    except PreviewError as e:
        print(f"Error: Compilation Failed:\n{e}", file=sys.stderr)
        sys.exit(1)
    print(generated)


def cmd_render(args):
    source_code, filepath = read_source(args.filename)
    config, registry = load_settings()
    html, state = asyncio.run(render_once(source_code, registry, config))
    emit(html, args.out)
    if state != PreviewState.READY:
        print(f"Error: Preview of {filepath} ended in state '{state.value}'", file=sys.stderr)
        sys.exit(1)


def cmd_watch(args):
    if not os.path.exists(args.filename):
        print(f"Error: File '{args.filename}' not found.", file=sys.stderr)
        sys.exit(1)
    config, registry = load_settings()
    log(f"Watching {args.filename} (Ctrl+C to stop)...")
    try:
        asyncio.run(watch(args.filename, registry, config, out=args.out))
    except KeyboardInterrupt:
        log("Stopped.")


def cmd_init(args):
    log("Initializing project...")
    if os.path.exists(CONFIG_FILENAME):
        log(f"{CONFIG_FILENAME} already exists, leaving it untouched")
        return
    write_default_config(CONFIG_FILENAME)
    log(f"Created {CONFIG_FILENAME}")


def main(argv=None):
    parser = argparse.ArgumentParser(description="livepane: live preview for component source")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output (sent to stderr)")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("compile", help="Print the generated Python for a component").add_argument(
        "filename", nargs="?", default="-", help="Component file (default: read from stdin)")

    render = subparsers.add_parser("render", help="Render a component to HTML")
    render.add_argument("filename", nargs="?", default="-", help="Component file (default: read from stdin)")
    render.add_argument("--out", help="Write the HTML to this file instead of stdout")

    watch_cmd = subparsers.add_parser("watch", help="Re-render a component whenever the file changes")
    watch_cmd.add_argument("filename")
    watch_cmd.add_argument("--out", help="Write the HTML to this file instead of stdout")

    subparsers.add_parser("init", help=f"Write a default {CONFIG_FILENAME}")

    args = parser.parse_args(argv)
    set_verbose(args.verbose)

    if args.command == "compile": cmd_compile(args)
    elif args.command == "render": cmd_render(args)
    elif args.command == "watch": cmd_watch(args)
    elif args.command == "init": cmd_init(args)
    else: parser.print_help()


if __name__ == "__main__":
    main()
