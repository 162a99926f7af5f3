"""Scheduler entry point that rotates QR tokens over HTTP.

Usage: set ROTATION_API_URL and ROTATION_SERVICE_KEY, then run
    python rotate_tokens.py
from cron (or any scheduler) at the desired interval.
"""
import logging
import os
import sys

import requests
from dotenv import load_dotenv

logger = logging.getLogger('rotate_tokens')

ENDPOINTS = ('start-tokens', 'end-tokens')


def call_rotation(base_url: str, service_key: str, name: str, timeout: float = 30) -> dict:
    """POST one rotation endpoint and return its data payload."""
    url = f"{base_url.rstrip('/')}/api/rotation/{name}"
    response = requests.post(
        url,
        headers={'X-Service-Key': service_key, 'Content-Type': 'application/json'},
        json={},
        timeout=timeout
    )
    if not response.ok:
        raise RuntimeError(f'{name} failed: {response.status_code} {response.text}')
    return response.json().get('data', {})


def main() -> int:
    logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s: %(message)s')
    load_dotenv()
    base_url = os.getenv('ROTATION_API_URL')
    service_key = os.getenv('ROTATION_SERVICE_KEY')

    if not base_url or not service_key:
        logger.error('Missing ROTATION_API_URL or ROTATION_SERVICE_KEY env var')
        return 1

    try:
        for name in ENDPOINTS:
            logger.info('Calling %s', name)
            result = call_rotation(base_url, service_key, name)
            logger.info('%s result: %s', name, result)
    except (requests.exceptions.RequestException, RuntimeError) as e:
        logger.error('Rotation error: %s', e)
        return 2

    logger.info('Rotation completed')
    return 0


if __name__ == '__main__':
    sys.exit(main())
