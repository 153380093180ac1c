"""
OTP BACKEND API ROUTES - FLASK BLUEPRINT

REST endpoints around otpauth.otp_core. Stateless: the secret is sent in the
JSON body of each request and never stored or logged.

EXAMPLES:
curl -X POST http://localhost:5000/generate_secret -H "Content-Type: application/json" -d "{}"
curl -X POST http://localhost:5000/totp -H "Content-Type: application/json" -d '{"secret": "JBSWY3DPEHPK3PXP"}'
"""

import logging

from flask import Blueprint, jsonify, request

from otpauth import otp_core

logger = logging.getLogger(__name__)

otp_bp = Blueprint('otp', __name__)

# Bounds for request fields; the core leaves these unchecked.
DIGITS_RANGE = (6, 10)
PERIOD_RANGE = (1, 86400)
WINDOW_RANGE = (0, 10)
LOOK_AHEAD_RANGE = (0, 100)
SECRET_BYTES_RANGE = (1, 1024)


@otp_bp.errorhandler(otp_core.EntropySourceUnavailable)
def entropy_unavailable(e):
    logger.error("Secret generation failed: %s", e)
    return jsonify({"error": str(e)}), 503


@otp_bp.errorhandler(ValueError)
def invalid_request(e):
    # OTPError subclasses ValueError: bad secret, algorithm, counter or period
    logger.warning("Rejected %s %s: %s", request.method, request.path, e)
    return jsonify({"error": str(e)}), 400


def _json():
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("JSON body must be an object")
    return data


def _int_field(data, name, default=None, bounds=None):
    value = data.get(name, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"'{name}' must be an integer")
    if bounds is not None and not bounds[0] <= value <= bounds[1]:
        raise ValueError(f"'{name}' must be between {bounds[0]} and {bounds[1]}")
    return value


def _str_field(data, name, default=None):
    value = data.get(name, default)
    if not isinstance(value, str):
        raise ValueError(f"'{name}' must be a string")
    return value


def _code_options(data):
    return (
        _int_field(data, 'digits', otp_core.DEFAULT_DIGITS, DIGITS_RANGE),
        _str_field(data, 'algorithm', otp_core.DEFAULT_ALGORITHM),
    )


@otp_bp.route('/generate_secret', methods=['POST'])
def generate_secret():
    """
    NEW SECRET KEY

      curl -X POST http://localhost:5000/generate_secret -H "Content-Type: application/json" -d '{"bytes": 32}'

    Output:
      {"secret": "..."}
    """
    data = _json()
    length = _int_field(data, 'bytes', otp_core.SECRET_BYTES, SECRET_BYTES_RANGE)
    secret = otp_core.generate_secret(length)
    logger.info("Generated %d-byte secret", length)
    return jsonify({"secret": secret})


@otp_bp.route('/hotp', methods=['POST'])
def get_hotp():
    """
    HOTP CODE (HMAC-based OTP)

    Input (JSON body):
      {
        "secret": "JBSWY3DPEHPK3PXP",  # REQUIRED
        "counter": 1,                  # REQUIRED
        "digits": 6,
        "algorithm": "SHA1"
      }

    Output:
      {"code": "123456"}
    """
    data = _json()
    if "secret" not in data or "counter" not in data:
        return jsonify({"error": "Secret and counter are required"}), 400

    digits, algorithm = _code_options(data)
    code = otp_core.hotp(_int_field(data, 'counter'), _str_field(data, 'secret'), digits, algorithm)
    return jsonify({"code": code})


@otp_bp.route('/totp', methods=['POST'])
def get_totp():
    """
    TOTP CODE (Time-based OTP)

    Input (JSON body):
      {
        "secret": "JBSWY3DPEHPK3PXP",  # REQUIRED
        "timestamp": 59,               # Unix time, default: now
        "period": 30,
        "digits": 6,
        "algorithm": "SHA1"
      }

    Output:
      {"code": "123456", "remaining": 12, "period": 30}
      remaining is in 1..period; exactly on a boundary it equals period.
    """
    data = _json()
    if "secret" not in data:
        return jsonify({"error": "Secret is required"}), 400

    secret = _str_field(data, 'secret')
    period = _int_field(data, 'period', otp_core.DEFAULT_TOTP_PERIOD, PERIOD_RANGE)
    digits, algorithm = _code_options(data)
    if data.get('timestamp') is None:
        code, remaining = otp_core.totp(secret, period, digits, algorithm)
    else:
        code, remaining = otp_core.totp_at(_int_field(data, 'timestamp'), secret, period, digits, algorithm)
    return jsonify({"code": code, "remaining": remaining, "period": period})


@otp_bp.route('/verify_totp', methods=['POST'])
def verify_totp_route():
    """
    VERIFY A TOTP CODE

    Input (JSON body):
      {
        "code": "123456",              # REQUIRED
        "secret": "JBSWY3DPEHPK3PXP",  # REQUIRED
        "window": 1,                   # allowed +/- steps
        "timestamp": null,
        "period": 30,
        "digits": 6,
        "algorithm": "SHA1"
      }

    Output:
      {"valid": true}  or  {"valid": false}
    """
    data = _json()
    if "code" not in data or "secret" not in data:
        return jsonify({"error": "Code and secret are required"}), 400

    digits, algorithm = _code_options(data)
    timestamp = data.get('timestamp')
    valid = otp_core.verify_totp(
        _str_field(data, 'code'),
        _str_field(data, 'secret'),
        timestamp=None if timestamp is None else _int_field(data, 'timestamp'),
        window=_int_field(data, 'window', 1, WINDOW_RANGE),
        period=_int_field(data, 'period', otp_core.DEFAULT_TOTP_PERIOD, PERIOD_RANGE),
        digits=digits,
        algorithm=algorithm,
    )
    return jsonify({"valid": valid})


@otp_bp.route('/verify_hotp', methods=['POST'])
def verify_hotp_route():
    """
    VERIFY AN HOTP CODE

    Input (JSON body):
      {
        "code": "123456",              # REQUIRED
        "counter": 1,                  # REQUIRED - current counter
        "secret": "JBSWY3DPEHPK3PXP",  # REQUIRED
        "look_ahead": 1,
        "digits": 6,
        "algorithm": "SHA1"
      }

    Output:
      {"valid": true, "new_counter": 2}  # on success
      {"valid": false}                   # on failure

    new_counter is the next counter to use.
    """
    data = _json()
    if "code" not in data or "counter" not in data or "secret" not in data:
        return jsonify({"error": "Code, counter and secret are required"}), 400

    digits, algorithm = _code_options(data)
    valid, new_counter = otp_core.verify_hotp(
        _str_field(data, 'code'),
        _int_field(data, 'counter'),
        _str_field(data, 'secret'),
        look_ahead=_int_field(data, 'look_ahead', 1, LOOK_AHEAD_RANGE),
        digits=digits,
        algorithm=algorithm,
    )
    if valid:
        return jsonify({"valid": valid, "new_counter": new_counter})
    return jsonify({"valid": valid})
