#!/usr/bin/env python3

"""
MoodMix command line.

    python main.py mix --mood 0.7 --discover 0.4 --length 40 --save
    python main.py mix --lightning
    python main.py single liked
    python main.py station artist
    python main.py block <track id> --title "Song" --artist "Band"
    python main.py blocked
    python main.py now-playing
    python main.py clear-history
    python main.py stats
"""

import argparse
import sys

from config.settings import ConfigManager
from core.exceptions import MixError
from core.mix_models import Channel, RunResult
from database.mix_database import close_database
from services.mix_service import MixService, STATION_KINDS
from utils.async_helpers import shutdown_loop
from utils.logging_config import setup_logging_from_config, get_logger

logger = get_logger("main")

SINGLE_SOURCE_CHOICES = {
    'liked': Channel.LIKED,
    'secondary': Channel.SECONDARY,
    'curated': Channel.CURATED,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="moodmix", description="Mood-driven playlist generator")
    parser.add_argument('--config', default="config/config.json", help="Path to config.json")
    parser.add_argument('--log-level', default=None, help="Override the configured log level")

    subparsers = parser.add_subparsers(dest='command', required=True)

    def add_run_options(sub):
        sub.add_argument('--length', type=int, default=None, help="Number of tracks")
        sub.add_argument('--no-explicit', action='store_true', help="Skip explicit tracks")
        sub.add_argument('--no-repeats-filter', action='store_true', help="Ignore the repeat cooldown")
        sub.add_argument('--save', action='store_true', help="Save the result as a playlist")
        sub.add_argument('--name', default=None, help="Playlist name when saving")

    mix = subparsers.add_parser('mix', help="Build a Smart Mix")
    mix.add_argument('--mood', type=float, default=None, help="0 = zen, 1 = chaos")
    mix.add_argument('--discover', type=float, default=None, help="0 = favorites only, 1 = outside the norm")
    mix.add_argument('--lightning', action='store_true', help="Random mood")
    add_run_options(mix)

    single = subparsers.add_parser('single', help="Mix from one linked source")
    single.add_argument('channel', choices=sorted(SINGLE_SOURCE_CHOICES))
    add_run_options(single)

    station = subparsers.add_parser('station', help="Intensity or artist radio")
    station.add_argument('kind', choices=STATION_KINDS)
    add_run_options(station)

    block = subparsers.add_parser('block', help="Never include a track again")
    block.add_argument('track_id')
    block.add_argument('--title', default=None)
    block.add_argument('--artist', default=None)

    unblock = subparsers.add_parser('unblock', help="Remove a track from the block list")
    unblock.add_argument('track_id')

    subparsers.add_parser('blocked', help="List blocked tracks")
    subparsers.add_parser('now-playing', help="Show current playback")
    subparsers.add_parser('clear-history', help="Reset the repeat cooldown")
    subparsers.add_parser('stats', help="Show block list, cooldown and artist cache sizes")

    return parser


def request_overrides(args) -> dict:
    overrides = {
        'target_length': args.length,
        'allow_explicit': False if args.no_explicit else None,
        'avoid_repeats': False if args.no_repeats_filter else None,
    }
    if args.command == 'mix':
        overrides.update({
            'mood': args.mood,
            'discover_level': args.discover,
            'lightning': args.lightning or None,
        })
    return overrides


def print_result(result: RunResult):
    print(f"\n{result.option_name}  ({len(result.tracks)} tracks)")
    print(f"  {result.summary}")
    if result.warning:
        print(f"  ! {result.warning}")
    print()
    for index, track in enumerate(result.tracks, 1):
        marker = "*" if track.is_new else " "
        print(f"{index:3d}. {marker} {track.artist} - {track.title}")


def run_command(service: MixService, args) -> int:
    if args.command in ('mix', 'single', 'station'):
        if args.command == 'mix':
            result = service.generate_mix(service.build_request(**request_overrides(args)))
        elif args.command == 'single':
            channel = SINGLE_SOURCE_CHOICES[args.channel]
            request = service.build_request(option_name=channel.label, **request_overrides(args))
            result = service.generate_single_source(channel, request)
        else:
            option_name = "Intensity Radio" if args.kind == 'intensity' else "Artist Radio"
            request = service.build_request(option_name=option_name, **request_overrides(args))
            result = service.generate_station(args.kind, request)

        print_result(result)
        if args.save:
            playlist_id = service.save_mix(result, args.name)
            if not playlist_id:
                print("Failed to save playlist", file=sys.stderr)
                return 1
            print(f"\nSaved as playlist {playlist_id}")
        return 0

    if args.command == 'block':
        service.block_track(args.track_id, args.title, args.artist)
        print(f"Blocked {args.track_id}")
        return 0

    if args.command == 'unblock':
        if not service.unblock_track(args.track_id):
            print(f"{args.track_id} was not blocked")
            return 1
        print(f"Unblocked {args.track_id}")
        return 0

    if args.command == 'blocked':
        blocked = service.list_blocked()
        if not blocked:
            print("No blocked tracks")
        for entry in blocked:
            label = " - ".join(part for part in (entry.artist_name, entry.title) if part) or entry.track_id
            print(f"{entry.track_id}  {label}")
        return 0

    if args.command == 'clear-history':
        print(f"Cleared {service.clear_history()} cooldown entries")
        return 0

    if args.command == 'stats':
        stats = service.statistics()
        print(f"Blocked tracks:   {stats['blocked_tracks']}")
        print(f"Cooling down:     {stats['cooldown_entries']}")
        print(f"Cached artists:   {stats['cached_artists']}")
        print(f"Database:         {stats['database_path']}")
        return 0

    if args.command == 'now-playing':
        state = service.now_playing()
        if not state or not state.get('track'):
            print("Nothing playing")
            return 0
        track = state['track']
        status = "Playing" if state.get('is_playing') else "Paused"
        device = f" on {state['device']}" if state.get('device') else ""
        print(f"{status}{device}: {track.artist} - {track.title}")
        return 0

    return 1


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    config = ConfigManager(args.config)
    logging_config = dict(config.get_logging_config())
    if args.log_level:
        logging_config['level'] = args.log_level
    setup_logging_from_config(logging_config)

    try:
        service = MixService(config)
        return run_command(service, args)
    except MixError as e:
        logger.error(f"{e.__class__.__name__}: {e}")
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 130
    finally:
        shutdown_loop()
        close_database()


if __name__ == "__main__":
    sys.exit(main())
