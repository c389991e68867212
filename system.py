#! /usr/bin/env python3

import datetime
import os
import subprocess
import tempfile
import uuid

from dataclasses import dataclass


@dataclass(frozen=True)
class ShellOutput:
    command: list[str]
    status: int
    outputString: str
    errorString: str

    @property
    def isSuccessful(self) -> bool:
        return self.status == 0


class Shell:
    """
    Runs external programs. Never raises on a non-zero exit, callers decide
    what a failure means from the returned ShellOutput.
    """

    def execute(self, command: list[str]) -> ShellOutput:
        completed = subprocess.run(command, capture_output=True, text=True)
        return ShellOutput(
            command=command,
            status=completed.returncode,
            outputString=completed.stdout,
            errorString=completed.stderr,
        )


class Files:
    def read(self, path: str) -> bytes:
        with open(path, "rb") as f:
            return f.read()

    def write(self, data: bytes, path: str):
        with open(path, "wb") as f:
            f.write(data)

    def makedirs(self, path: str):
        try:
            os.makedirs(path, exist_ok=True)
        except OSError:
            if not os.path.isdir(path):
                raise

    def uniqueTemporaryPath(self) -> str:
        # A fresh directory per call, files inside it never collide
        return tempfile.mkdtemp(prefix="signhere-")


class Clock:
    def now(self) -> datetime.datetime:
        return datetime.datetime.now(datetime.timezone.utc)


class UUIDFactory:
    def make(self) -> str:
        return str(uuid.uuid4()).upper()


class Log:
    """
    Prints diagnostics to stdout. Debug messages only show up when the log
    level starts with "d" (e.g. "debug").
    """

    def __init__(self, logLevel: str | None = None):
        self.logLevel = logLevel
        self.lines: list[str] = []

    def debug(self, message: str):
        if self.logLevel and self.logLevel[0].lower() == "d":
            print(f"DEBUG: {message}")

    def error(self, message: str):
        print(f"ERROR: {message}")

    def append(self, message: str):
        self.lines.append(message)
        print(message)
