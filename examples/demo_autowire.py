#!/usr/bin/env python3
"""Demo script for container registration and autowiring."""

import sys

# Add the current directory to Python path
sys.path.insert(0, '.')

from iocbox import ArgumentMapper, AutowireError, Container, ContainerTypeError


class Settings:
    def __init__(self, dsn: str, pool_size: int = 5):
        self.dsn = dsn
        self.pool_size = pool_size


class Database:
    def __init__(self, settings: Settings):
        self.settings = settings


class Mailer:
    def __init__(self, sender: str):
        self.sender = sender


class SignupService:
    def __init__(self, db: Database, mailer: Mailer):
        self.db = db
        self.mailer = mailer


class Parent:
    def __init__(self, child: "Child"):
        self.child = child


class Child:
    def __init__(self, parent: Parent):
        self.parent = parent


def demo_autowire():
    """Demonstrate nested autowiring with mapped defaults."""
    print("=== Autowiring ===\n")

    mapper = ArgumentMapper({
        Settings: {"dsn": "sqlite:///demo.db"},
        Mailer: lambda: {"sender": "noreply@example.com"},
    })
    container = Container(argument_mapper=mapper)
    container.add_auto_interface(Database, Database)

    service = container.autowire(SignupService)
    print(f"SignupService.db.settings.dsn = {service.db.settings.dsn}")
    print(f"SignupService.mailer.sender = {service.mailer.sender}")
    print(f"Shared database: {service.db is container.get_instance(Database)}\n")


def demo_strict_mode():
    """Demonstrate strict instance checks."""
    print("=== Strict mode ===\n")

    container = Container()
    container.add_interface(Mailer, lambda: "not a mailer")
    try:
        container.get_instance(Mailer)
    except ContainerTypeError as e:
        print(f"Strict mode error:\n{e}\n")


def demo_cycles():
    """Demonstrate circular dependency detection."""
    print("=== Circular dependencies ===\n")

    try:
        Container().autowire(Parent)
    except AutowireError as e:
        print(f"Autowire error:\n{e}\n")


if __name__ == "__main__":
    demo_autowire()
    demo_strict_mode()
    demo_cycles()
