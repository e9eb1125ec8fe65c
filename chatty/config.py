# -*- coding: utf-8 -*-
"""
Chatty client configuration.
"""

import os

# ============================================================================
# Build type
# ============================================================================
# debug | release. Selects which server the client talks to.
BUILD_TYPE = (os.environ.get('CHATTY_BUILD') or 'debug').strip().lower()
if BUILD_TYPE not in ('debug', 'release'):
    BUILD_TYPE = 'debug'

# ============================================================================
# Server
# ============================================================================
SERVER_URL_DEBUG = (os.environ.get('CHATTY_SERVER_URL_DEBUG') or 'http://10.0.2.2:3000/').strip()
SERVER_URL_RELEASE = (os.environ.get('CHATTY_SERVER_URL_RELEASE') or 'https://chatty-server.onrender.com/').strip()
SERVER_URL = SERVER_URL_RELEASE if BUILD_TYPE == 'release' else SERVER_URL_DEBUG

HTTP_TIMEOUT = 15.0  # seconds

# Socket.IO transports, in preference order
SOCKET_TRANSPORTS = ['websocket', 'polling']

# Room list fetches run off the event thread
ROOM_FETCH_WORKERS = 2

# ============================================================================
# Local storage
# ============================================================================
APP_SERVICE_NAME = 'Chatty'
APP_DATA_DIR = os.path.join(os.environ.get('APPDATA') or os.path.expanduser('~'), 'Chatty')

# ============================================================================
# Logging
# ============================================================================
LOG_FILE = os.path.join(APP_DATA_DIR, 'client.log')
LOG_LEVEL = (os.environ.get('CHATTY_LOG_LEVEL') or ('DEBUG' if BUILD_TYPE == 'debug' else 'INFO')).strip().upper()

# ============================================================================
# App info
# ============================================================================
APP_NAME = "Chatty"
VERSION = "1.0.0"
