#!/usr/bin/env python3
"""
otp_cli.py — CLI wrapper for otp_core.py

Subcommands:
- secret : generate a new Base32 secret
- hotp   : HOTP code for a counter
- totp   : TOTP code now (or at --at), optionally refreshed in real time
- uri    : otpauth:// URI for an authenticator app
- verify : check a TOTP/HOTP code

The secret is read from --secret, or from the OTPAUTH_SECRET environment
variable so it does not end up in shell history.
"""

import argparse
import os
import sys
import time

from . import otp_core

SECRET_ENV = "OTPAUTH_SECRET"


def log(msg: str, verbose: bool):
    if verbose:
        print(f"[+] {msg}")


def _secret(args) -> str:
    secret = args.secret or os.environ.get(SECRET_ENV)
    if not secret:
        raise ValueError(f"No secret given: use --secret or set {SECRET_ENV}")
    return secret


# --- CLI command handlers ---
def cmd_secret(args):
    secret = otp_core.generate_secret(args.bytes)
    log(f"Generated {args.bytes * 8}-bit secret", args.verbose)
    print(secret)
    return 0


def cmd_hotp(args):
    log(f"HOTP: HMAC-{args.algorithm.upper()}(key=secret, msg=counter={args.counter})", args.verbose)
    code = otp_core.hotp(args.counter, _secret(args), args.digits, args.algorithm)
    print(code)
    return 0


def cmd_totp(args):
    secret = _secret(args)
    if args.watch:
        return _watch_totp(secret, args)
    now = int(time.time()) if args.at is None else args.at
    code, remaining = otp_core.totp_at(now, secret, args.period, args.digits, args.algorithm)
    log(f"TOTP: time={now}, counter={now // args.period}, remaining={remaining}s", args.verbose)
    print(f"{code} {remaining}")
    return 0


def _watch_totp(secret, args):
    print(f"Press Ctrl+C to quit. Generating {args.digits}-digit TOTP every {args.period}s...\n")
    last_code = None
    try:
        while True:
            code, remaining = otp_core.totp(secret, args.period, args.digits, args.algorithm)
            if code != last_code:
                print(f"TOTP ({args.digits}d): {code}  (valid ~{remaining:2d}s)")
                last_code = code
            else:
                print(f".. {remaining:2d}s left", end='\r', flush=True)
            time.sleep(1)
    except KeyboardInterrupt:
        print("\nBye.")
    return 0


def cmd_uri(args):
    secret = _secret(args)
    if args.uri_type == "hotp":
        link = otp_core.hotp_uri(secret, args.issuer, args.label, args.image,
                                 args.counter, args.digits, args.algorithm)
    else:
        link = otp_core.totp_uri(secret, args.issuer, args.label, args.image,
                                 args.period, args.digits, args.algorithm)
    print(link)
    return 0


def cmd_verify_totp(args):
    ok = otp_core.verify_totp(
        args.code,
        _secret(args),
        timestamp=args.at,
        window=args.window,
        period=args.period,
        digits=args.digits,
        algorithm=args.algorithm,
    )
    if ok:
        print("[+] TOTP code is VALID")
        return 0
    print("[-] TOTP code is INVALID")
    return 1


def cmd_verify_hotp(args):
    ok, new_counter = otp_core.verify_hotp(
        args.code,
        args.counter,
        _secret(args),
        look_ahead=args.look_ahead,
        digits=args.digits,
        algorithm=args.algorithm,
    )
    if ok:
        print(f"[+] HOTP code is VALID (next counter = {new_counter})")
        return 0
    print("[-] HOTP code is INVALID")
    return 1


# --- Argparse builder ---
def _add_code_options(p, period=False):
    p.add_argument("--secret", help=f"Base32 secret (default: ${SECRET_ENV})")
    p.add_argument("--digits", type=int, default=otp_core.DEFAULT_DIGITS, help="Number of OTP digits")
    p.add_argument("--algorithm", default=otp_core.DEFAULT_ALGORITHM,
                   help="HMAC algorithm: SHA1, SHA256 or SHA512")
    if period:
        p.add_argument("--period", type=int, default=otp_core.DEFAULT_TOTP_PERIOD,
                       help="TOTP time step (seconds)")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="otpauth", description="HOTP/TOTP code and otpauth URI generator")
    p.add_argument("--verbose", action="store_true", help="Verbose output")
    sub = p.add_subparsers(dest="cmd")

    # secret
    ps = sub.add_parser("secret", help="Generate a random Base32 secret")
    ps.add_argument("--bytes", type=int, default=otp_core.SECRET_BYTES,
                    help="Secret length in bytes (min 16, recommended 20)")
    ps.set_defaults(func=cmd_secret)

    # hotp
    ph = sub.add_parser("hotp", help="Generate HOTP code for a specific counter")
    ph.add_argument("--counter", type=int, required=True)
    _add_code_options(ph)
    ph.set_defaults(func=cmd_hotp)

    # totp
    pt = sub.add_parser("totp", help="Generate TOTP code and seconds remaining")
    pt.add_argument("--at", type=int, help="Unix timestamp (default: now)")
    pt.add_argument("--watch", action="store_true", help="Show TOTP code in real time")
    _add_code_options(pt, period=True)
    pt.set_defaults(func=cmd_totp)

    # uri
    pu = sub.add_parser("uri", help="Print an otpauth URI for TOTP/HOTP")
    sub_u = pu.add_subparsers(dest="uri_type", required=True)
    for name in ("hotp", "totp"):
        q = sub_u.add_parser(name, help=f"{name.upper()} provisioning URI")
        q.add_argument("--issuer", required=True, help="Issuer (service name)")
        q.add_argument("--label", required=True, help="Account label, e.g. alice@example.com")
        q.add_argument("--image", help="URL of an image for the token entry")
        _add_code_options(q, period=(name == "totp"))
        if name == "hotp":
            q.add_argument("--counter", type=int, default=otp_core.DEFAULT_HOTP_COUNTER)
        q.set_defaults(func=cmd_uri)

    # verify
    pv = sub.add_parser("verify", help="Verify an OTP code (TOTP or HOTP)")
    sub_v = pv.add_subparsers(dest="verify_type", required=True)

    pvt = sub_v.add_parser("totp", help="Verify a TOTP code")
    pvt.add_argument("--code", required=True, help="OTP code to verify")
    pvt.add_argument("--at", type=int, help="Unix timestamp (default: now)")
    pvt.add_argument("--window", type=int, default=1, help="Allowed +/- step window")
    _add_code_options(pvt, period=True)
    pvt.set_defaults(func=cmd_verify_totp)

    pvh = sub_v.add_parser("hotp", help="Verify a HOTP code")
    pvh.add_argument("--code", required=True, help="OTP code to verify")
    pvh.add_argument("--counter", type=int, required=True, help="Current HOTP counter")
    pvh.add_argument("--look-ahead", type=int, default=1, help="Allowed counter look-ahead")
    _add_code_options(pvh)
    pvh.set_defaults(func=cmd_verify_hotp)

    return p


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return 0
    try:
        return args.func(args)
    except ValueError as e:
        print(f"[!] {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
