#!/usr/bin/env python
import argparse
import logging
import pathlib
import sys

from ksoneditor.parser import load_chart, save_chart


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Reads a KSH/KSON file and prints out its note counts, optionally converting it to KSON."
    )
    parser.add_argument("filename", nargs="+", help="input KSH/KSON file(s) to read")
    parser.add_argument("--porcelain", action="store_true", help="produce machine readable output")
    parser.add_argument("--output", action="store", help="directory to write converted KSON files to")
    parser.add_argument("--log-level", action="store", help="change logging level. invalid values are silently ignored")
    args = parser.parse_args()

    log_level = logging.WARNING
    if args.log_level is not None:
        try:
            log_level_int = int(args.log_level)
            if log_level_int in logging._levelToName:
                log_level = log_level_int
        except ValueError:
            log_level_str = args.log_level.upper()
            log_level = logging._nameToLevel.get(log_level_str, log_level)
    logging.basicConfig(format="[%(levelname)s %(asctime)s] %(name)s: %(message)s", level=log_level)

    output_dir = pathlib.Path(args.output) if args.output is not None else None
    for fn in args.filename:
        try:
            fpath = pathlib.Path(fn)
            chart = load_chart(fpath)

            if output_dir is not None:
                output_dir.mkdir(parents=True, exist_ok=True)
                save_chart(chart, output_dir / fpath.with_suffix(".kson").name)

            note = chart.note
            if args.porcelain:
                print(
                    "\t".join(
                        str(n)
                        for n in [
                            note.chip_notecount,
                            note.long_notecount,
                            note.vol_notecount,
                            note.slam_notecount,
                        ]
                    )
                )
            else:
                print(fn)
                print(f"{chart.meta.title} / {chart.meta.artist}")
                print("=====  NOTECOUNTS  =====")
                print(f"CHIP             | {note.chip_notecount:>5}")
                print(f"LONG             | {note.long_notecount:>5}")
                print(f"VOL              | {note.vol_notecount:>5}")
                print(f"SLAM             | {note.slam_notecount:>5}")
                print("=====    TEMPO     =====")
                for event in chart.beat.bpm:
                    print(f"{event.y:>16} | {event.v:g}")
                print()
        except (OSError, ValueError) as err:
            if args.porcelain:
                print("\t".join(["-1"] * 4))
                continue
            print(f"{parser.prog}: {type(err).__name__}: {err}")
            print(f"{parser.prog}: error: unable to parse file, or no such file: {fn!r}")
            return 3

    return 0


if __name__ == "__main__":
    sys.exit(main())
