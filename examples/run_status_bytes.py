import argparse
import sys
from enum import IntEnum
from pathlib import Path

# Ensure local repo package is used even if another "u8bits" is on PYTHONPATH.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from u8bits import ByteStruct, bitfields


class Speed(IntEnum):
    OFF = 0b00
    SLOW = 0b01
    FAST = 0b10
    TURBO = 0b11


class Fault(IntEnum):
    NONE = 0
    OVERHEAT = 1
    STALL = 2


@bitfields(
    """
    /// motor enabled
    enable: rw 0, 7;
    /// speed selector
    Speed, speed: rw 0, 0, 1;
    /// last fault, if the code is known
    Fault, fault: r? 1, 4, 6;
    u8, retries: rw 1, 0, 3;
    """,
    types={"Speed": Speed, "Fault": Fault},
)
class MotorStatus(ByteStruct):
    SIZE = 2


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Decode a 2-byte motor status word.")
    parser.add_argument("hex", help="Status bytes as hex, e.g. 8121")
    return parser.parse_args()


def main() -> None:
    args = parse_args()

    status = MotorStatus.from_bytes(bytes.fromhex(args.hex))
    print(status)
    print(f"enable : {status.get_enable()}")
    print(f"speed  : {status.get_speed().name}")
    fault = status.get_fault()
    print(f"fault  : {fault.name if fault is not None else 'unknown code'}")
    print(f"retries: {status.get_retries()}")


if __name__ == "__main__":
    main()
