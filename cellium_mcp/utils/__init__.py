# -*- coding: utf-8 -*-
"""Location: ./cellium_mcp/utils/__init__.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: Cellium contributors

Utility helpers.
"""
