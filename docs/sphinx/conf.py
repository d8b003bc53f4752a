# Copyright 2026 ProtoWire Contributors
# SPDX-License-Identifier: Apache-2.0

"""Sphinx configuration for ProtoWire documentation."""

project = "ProtoWire"
author = "ProtoWire Contributors"
release = "0.1.0"

extensions: list[str] = []

html_theme = "alabaster"
