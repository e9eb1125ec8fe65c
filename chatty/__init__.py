# -*- coding: utf-8 -*-
"""
Chatty realtime chat client.
"""

from chatty.config import VERSION as __version__  # noqa: F401
