#!/usr/bin/env python3
"""
GlitchCombo — Image Glitch Engine
CLI entry point. Also importable as a library.

Usage:
    python glitchcombo.py apply photo.jpg out.png --stage pixelate --stage dither
    python glitchcombo.py apply photo.jpg out.png --stage dither --set dither_algo=atkinson
    python glitchcombo.py apply photo.jpg out.png --preset "Game Boy" --flip
    python glitchcombo.py apply photo.jpg out.png --slot 0
    python glitchcombo.py list-stages
    python glitchcombo.py presets
    python glitchcombo.py slots
    python glitchcombo.py serve --port 7860
"""

import sys
import os
import json
import argparse
import logging

# Add project root to path so imports work
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from core.config import EffectConfig, configure_logging
from core.image_io import load_image, save_image
from core.render import render_image
from core.safety import preflight, validate_stage_count
from core.slots import PresetStore
from effects import STAGE_ORDER, execution_order, list_stages, normalize_stages
from presets import BUILT_IN_PRESETS, get_preset

__version__ = "0.1.0"

logger = logging.getLogger("glitchcombo")


def _parse_param_value(val: str):
    """Safely parse a CLI parameter value (bool, number, or string)."""
    if val.lower() in ("true", "yes", "on"):
        return True
    if val.lower() in ("false", "no", "off"):
        return False

    # Reject NaN/Inf as standalone strings
    if val.lower().strip() in ('nan', 'inf', '-inf', '+inf', 'infinity', '-infinity'):
        raise ValueError(f"NaN/Inf not allowed: {val}")

    # Colors like #ff0055 stay strings
    if val.startswith("#"):
        return val

    # Float
    if '.' in val or 'e' in val.lower():
        try:
            return float(val)
        except ValueError:
            return val

    # Integer
    try:
        return int(val)
    except (ValueError, TypeError):
        return val  # Keep as string


def _parse_overrides(pairs) -> dict:
    overrides = {}
    for pair in pairs or []:
        if "=" not in pair:
            raise ValueError(f"Expected key=value, got: {pair}")
        key, val = pair.split("=", 1)
        overrides[key.strip()] = _parse_param_value(val.strip())
    return overrides


def build_state(args) -> tuple:
    """Combine --preset / --slot, --config, --set, --stage and --flip.

    Later sources win: preset or slot, then config file, then --set.
    Stages from --stage are added to whatever the preset enables.
    """
    stages, config, flip = frozenset(), EffectConfig(), False

    if args.preset:
        found = get_preset(args.preset)
        if found is None:
            names = ", ".join(p["name"] for p in BUILT_IN_PRESETS)
            raise ValueError(f"Unknown preset: {args.preset}. Available: {names}")
        stages, config, flip = found
    elif args.slot is not None:
        preset = PresetStore().load(args.slot)
        if preset is None:
            raise ValueError(f"Slot {args.slot} is empty")
        stages, config, flip = preset.active_stages, preset.config, preset.flip

    if args.config:
        with open(args.config) as f:
            config = config.replace(**json.load(f))

    overrides = _parse_overrides(args.set)
    if overrides:
        config = config.replace(**overrides)

    validate_stage_count(args.stage)
    stages = stages | normalize_stages(args.stage)
    return stages, config, flip or args.flip


def cmd_apply(args):
    """Run the enabled stages over one image and save the result."""
    info = preflight(args.input)
    print(f"Source validated: {info['size_mb']:.1f}MB {info['extension']}")

    stages, config, flip = build_state(args)
    if not stages:
        print("No stages enabled; output will be a copy of the input. "
              "Use --stage or --preset.", file=sys.stderr)

    frame = load_image(info["path"])
    result = render_image(frame, config, stages, flip)
    output = save_image(result.frame, args.output)

    order = " → ".join(result.executed) or "(none)"
    print(f"Stages: {order}{'  [flipped]' if flip else ''}")
    for name, error in result.errors.items():
        print(f"  Skipped {name}: {error}", file=sys.stderr)
    print(f"Saved: {output} ({result.width}x{result.height})")

    if args.save_slot is not None:
        PresetStore().save(args.save_slot, stages, config, flip)
        print(f"Saved state to slot {args.save_slot}")


def cmd_list_stages(args):
    """List all stages in execution order."""
    stages = list_stages()
    print(f"\n  Stages ({len(stages)}, always run in this order)")
    print(f"  {'—' * 50}")
    for i, s in enumerate(stages, 1):
        aliases = f"  (aka {', '.join(s['aliases'])})" if s["aliases"] else ""
        print(f"  {i}. {s['name']:10s} — {s['description']}{aliases}")
        if not args.compact:
            params_str = ", ".join(f"{k}={v}" for k, v in s["params"].items())
            print(f"     {'':10s}   Params: {params_str}")
    print()


def cmd_presets(args):
    """List built-in presets."""
    print(f"\n  Built-in Presets ({len(BUILT_IN_PRESETS)})")
    print(f"  {'—' * 50}")
    for p in BUILT_IN_PRESETS:
        order = " → ".join(execution_order(p["stages"]))
        print(f"    {p['name']:15s} [{p['category']}] {order}")
        print(f"    {'':15s}   {p['description']}")
    print(f"\n  Usage: --preset \"<name>\"\n")


def cmd_slots(args):
    """Show the contents of the save slots."""
    store = PresetStore()
    print(f"\n  Save Slots ({store.path})")
    print(f"  {'—' * 50}")
    for i, preset in enumerate(store.list()):
        if preset is None:
            print(f"    {i}: (empty)")
            continue
        order = ", ".join(name for name in STAGE_ORDER if name in preset.active_stages)
        flip = "  [flipped]" if preset.flip else ""
        print(f"    {i}: {order or '(no stages)'}{flip}")
    print()


def cmd_serve(args):
    """Launch the HTTP backend."""
    from server import start
    start(host=args.host, port=args.port)


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="glitchcombo",
        description="GlitchCombo — stackable image glitch effects",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING (default), ERROR")
    sub = parser.add_subparsers(dest="command")

    # apply
    p = sub.add_parser("apply", help="Apply stages to an image")
    p.add_argument("input", help="Source image")
    p.add_argument("output", help="Output image (format from extension)")
    p.add_argument("--stage", action="append", default=[], help="Stage to enable (repeatable)")
    p.add_argument("--set", nargs="*", default=[], help="Config overrides as key=value pairs")
    p.add_argument("--config", help="JSON file with config values")
    p.add_argument("--flip", action="store_true", help="Mirror horizontally before processing")
    group = p.add_mutually_exclusive_group()
    group.add_argument("--preset", help="Start from a built-in preset")
    group.add_argument("--slot", type=int, help="Start from a saved slot")
    p.add_argument("--save-slot", type=int, help="Also save the resulting state into a slot")

    # list-stages
    p = sub.add_parser("list-stages", help="List all stages in execution order")
    p.add_argument("--compact", action="store_true", help="Compact view (names only)")

    # presets
    sub.add_parser("presets", help="List built-in presets")

    # slots
    sub.add_parser("slots", help="Show saved slots")

    # serve
    p = sub.add_parser("serve", help="Launch the HTTP backend")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=7860)

    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    commands = {
        "apply": cmd_apply,
        "list-stages": cmd_list_stages,
        "presets": cmd_presets,
        "slots": cmd_slots,
        "serve": cmd_serve,
    }

    if args.command in commands:
        try:
            commands[args.command](args)
        except Exception as e:
            logger.debug("Command %s failed", args.command, exc_info=True)
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
