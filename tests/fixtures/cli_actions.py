"""Action registry imported by the CLI tests."""

from stepwise import ActionError, ActionRegistry


def echo(ctx, input):
    return input


def boom(ctx, input):
    raise ActionError("boom", output={"partial": True})


REGISTRY = ActionRegistry({"echo": echo, "boom": boom})
