"""
Command Line Tool for the RF Signal Generator
=============================================

Entry point for the `pysiggen` command.

Example:
    pysiggen --auto identity
    pysiggen --port /dev/ttyACM0 frequency 2450
    pysiggen --auto sweep 2400 2500 1 40
    pysiggen --emulate sweep 2400 2500 10 10 --watt --notation linear
    pysiggen ports

Every exchange is echoed as it happens:
    >   $FCS,0,2450
    <   $FCS,0,OK
"""

import argparse
import logging
import sys
from typing import List, Optional

from .config import ExchangeSettings, SerialSettings
from .emulator import EmulatedTransport
from .exceptions import NoCandidateDeviceError, SweepMalformed
from .framing import ExchangeOutcome, LogEntry
from .session import SignalGenerator
from .sweep import S11Notation, SweepResult
from .tools import setup_logging
from .transport import SerialTransport, enumerate_ports

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pysiggen",
        description="RF Signal Generator Control Tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__.split("Example:", 1)[1],
    )

    target = parser.add_mutually_exclusive_group()
    target.add_argument('--port', '-p',
                        help='Serial port (e.g. /dev/ttyACM0, COM3)')
    target.add_argument('--auto', '-a', action='store_true',
                        help='Connect to the first detected signal generator board')
    target.add_argument('--emulate', action='store_true',
                        help='Use an emulated board (no hardware)')

    parser.add_argument('--baudrate', '-b', type=int, default=None,
                        help='Baudrate (default: 115200)')
    parser.add_argument('--max-wait', type=float, default=None,
                        help='Give up on a reply after this many seconds (default: wait)')
    parser.add_argument('--verbose', '-v', action='count', default=0,
                        help='-v for info, -vv for serial traffic debug')

    sub = parser.add_subparsers(dest='command', required=True)

    sub.add_parser('ports', help='List serial ports and mark signal generator boards')
    sub.add_parser('identity', help='Get identity ($IDN)')
    sub.add_parser('version', help='Get firmware version ($VER)')

    status = sub.add_parser('status', help='Get status ($ST)')
    status.add_argument('--verbose', dest='verbose_status', action='store_true',
                        help='List all active errors')

    sub.add_parser('clear-errors', help='Clear errors ($ERRC)')

    frequency = sub.add_parser('frequency', help='Get or set frequency ($FCG/$FCS)')
    frequency.add_argument('value', nargs='?', help='New frequency (MHz)')

    power = sub.add_parser('power', help='Get or set power setpoint ($PWRG/$PWRS)')
    power.add_argument('value', nargs='?', help='New power setpoint')
    power.add_argument('--pa', action='store_true',
                       help='Read the PA power measurement instead ($PPG)')

    dll = sub.add_parser('dll', help='DLL control ($DLES/$DLCS)')
    dll_sub = dll.add_subparsers(dest='dll_action', required=True)
    dll_sub.add_parser('on')
    dll_sub.add_parser('off')
    dll_set = dll_sub.add_parser('set', help='Configure the DLL')
    dll_set.add_argument('params', nargs=6, metavar='P',
                         help='lower upper start step threshold delay')

    rf = sub.add_parser('rf', help='RF output on/off ($ECS)')
    rf.add_argument('state', choices=['on', 'off'])

    sweep = sub.add_parser('sweep', help='Run an S11 sweep ($SWPD)')
    sweep.add_argument('start', help='Start frequency (MHz)')
    sweep.add_argument('stop', help='Stop frequency (MHz)')
    sweep.add_argument('step', help='Frequency step (MHz)')
    sweep.add_argument('power', help='Power (dBm, or watt with --watt)')
    sweep.add_argument('--watt', action='store_true',
                       help='POWER is given in watt')
    sweep.add_argument('--notation', choices=[n.value for n in S11Notation],
                       default=S11Notation.LOGARITHMIC.value,
                       help='S11 column: log (dB) or linear (%%)')

    return parser


def print_message(entry: LogEntry) -> None:
    print(entry.render().rstrip("\r\n"))


def print_ports() -> int:
    ports = enumerate_ports()
    if not ports:
        print("No serial ports found")
        return 0
    for p in ports:
        mark = "*" if p.matches() else " "
        ids = f"{p.vendor_id}:{p.product_id}" if p.vendor_id is not None else "-"
        print(f"{mark} {p.device:<20} {ids:<12} {p.description}")
    return 0


def print_sweep(result: SweepResult, notation: S11Notation) -> None:
    label = "S11 (dB)" if notation is S11Notation.LOGARITHMIC else "Refl. (%)"
    print(f"{'Freq (MHz)':>12} {'Fwd (dBm)':>10} {'Rfl (dBm)':>10} {label:>10}")
    _, values = result.series(notation)
    for sample, value in zip(result, values):
        print(f"{sample.frequency_mhz:>12.2f} {sample.forward_power_dbm:>10.2f} "
              f"{sample.reflected_power_dbm:>10.2f} {value:>10.2f}")
    for error in result.errors:
        print(f"  warning: {error}")


def open_session(args: argparse.Namespace) -> SignalGenerator:
    settings = ExchangeSettings(max_duration=args.max_wait)

    if args.emulate:
        return SignalGenerator(EmulatedTransport(), settings, on_message=print_message)

    if args.port:
        serial_settings = SerialSettings(port=args.port)
        if args.baudrate:
            serial_settings.baudrate = args.baudrate
        return SignalGenerator(SerialTransport(serial_settings), settings,
                               on_message=print_message)

    return SignalGenerator.autodetect(settings, on_message=print_message)


def run_command(sg: SignalGenerator, args: argparse.Namespace) -> Optional[ExchangeOutcome]:
    """Run the selected subcommand. Returns None for sweeps."""
    cmd = args.command

    if cmd == 'identity':
        return sg.get_identity()
    if cmd == 'version':
        return sg.get_version()
    if cmd == 'status':
        return sg.get_status(verbose=args.verbose_status)
    if cmd == 'clear-errors':
        return sg.clear_errors()
    if cmd == 'frequency':
        return sg.get_frequency() if args.value is None else sg.set_frequency(args.value)
    if cmd == 'power':
        if args.pa:
            return sg.get_pa_power()
        return sg.get_power() if args.value is None else sg.set_power(args.value)
    if cmd == 'dll':
        if args.dll_action == 'on':
            return sg.enable_dll()
        if args.dll_action == 'off':
            return sg.disable_dll()
        return sg.configure_dll(args.params)
    if cmd == 'rf':
        return sg.enable_rf() if args.state == 'on' else sg.disable_rf()
    if cmd == 'sweep':
        if args.watt:
            result = sg.run_sweep_watt(args.start, args.stop, args.step, float(args.power))
        else:
            result = sg.run_sweep(args.start, args.stop, args.step, args.power)
        print_sweep(result, S11Notation(args.notation))
        return None

    raise ValueError(f"Unknown command: {cmd}")


def main(argv: Optional[List[str]] = None) -> int:
    """
    Command-line interface.

    Entry point for `pysiggen` command.
    """
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    if args.command == 'ports':
        return print_ports()

    try:
        sg = open_session(args)
    except NoCandidateDeviceError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    if not sg.connect():
        print("ERROR: Could not open serial port", file=sys.stderr)
        return 1

    try:
        outcome = run_command(sg, args)
    except (SweepMalformed, ValueError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nCancelled.", file=sys.stderr)
        return 1
    finally:
        sg.disconnect()

    if outcome is not None and not outcome.ok:
        print(f"ERROR: exchange ended with {outcome.kind.value}", file=sys.stderr)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
