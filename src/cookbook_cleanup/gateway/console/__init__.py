"""Operator confirmation prompts."""

from cookbook_cleanup.gateway.console.abc import Console as Console
from cookbook_cleanup.gateway.console.fake import FakeConsole as FakeConsole
from cookbook_cleanup.gateway.console.real import RealConsole as RealConsole
