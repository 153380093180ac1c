"""
FLASK APP MAIN ENTRY POINT - OTP CODE SERVER
============================================

Sets up the Flask app, CORS and the OTP blueprint.

The API is stateless: every request carries its own secret, nothing is stored.

Configuration (environment variables):
- OTPAUTH_API_SECRET_KEY   Flask secret key (random if unset)
- OTPAUTH_API_CORS_ORIGINS comma-separated allowed origins (default "*")
- OTPAUTH_API_HOST         listen address (default 0.0.0.0)
- OTPAUTH_API_PORT         listen port (default 5000)
- OTPAUTH_API_DEBUG        "1"/"true" enables debug mode
- OTPAUTH_API_LOG_LEVEL    logging level (default INFO)
"""
import logging
import os

from flask import Flask, jsonify
from flask_cors import CORS

from otpauth_api.routes import otp_bp

CORS_ORIGINS = [o.strip() for o in os.environ.get('OTPAUTH_API_CORS_ORIGINS', '*').split(',') if o.strip()]
HOST = os.environ.get('OTPAUTH_API_HOST', '0.0.0.0')
PORT = int(os.environ.get('OTPAUTH_API_PORT', '5000'))
DEBUG = os.environ.get('OTPAUTH_API_DEBUG', '').lower() in ('1', 'true', 'yes')
LOG_LEVEL = os.environ.get('OTPAUTH_API_LOG_LEVEL', 'INFO').upper()

app = Flask(__name__)
app.secret_key = os.environ.get('OTPAUTH_API_SECRET_KEY') or os.urandom(32)

# Allow a frontend on another origin to call the API
CORS(app, origins=CORS_ORIGINS)

app.register_blueprint(otp_bp)


@app.route('/health', methods=['GET'])
def health():
    return jsonify({"status": "ok"})


def main():
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app.run(debug=DEBUG, host=HOST, port=PORT)


if __name__ == '__main__':
    main()
