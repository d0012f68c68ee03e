"""Command shell: dispatcher, session loop, script runner and record reader."""

from smarthome_registry.shell.dispatcher import CommandDispatcher, UsageError
from smarthome_registry.shell.reader import ConsoleRecordReader, ScriptLineSource, StreamLineSource
from smarthome_registry.shell.session import CommandOutcome, InteractiveSession, ScriptRunner

__all__ = [
	"CommandDispatcher",
	"CommandOutcome",
	"ConsoleRecordReader",
	"InteractiveSession",
	"ScriptLineSource",
	"ScriptRunner",
	"StreamLineSource",
	"UsageError",
]
