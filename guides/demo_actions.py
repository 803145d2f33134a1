"""Demo actions usable from the CLI.

    stepwise run execute demo_actions:REGISTRY --base-path guides \
        --input '{"2": {"random": true}}'
"""

import random

from stepwise import ActionContext, ActionError, ActionRegistry


def print_action(ctx: ActionContext, input: dict) -> dict:
    print(f"[{ctx.run_id}] step {ctx.step} arguments passed: {input}")
    return input


def add_random_value(ctx: ActionContext, input: dict) -> dict:
    return {**input, "value": random.randint(0, 999)}


async def fail_random(ctx: ActionContext, input: dict) -> dict:
    # always fail if "fail" is set, fail half the time if "random" is set
    if input.get("fail"):
        raise ActionError("permanent fail", output={"attempt": ctx.attempt})
    if input.get("random") and random.random() < 0.5:
        raise ActionError("random fail", output={"attempt": ctx.attempt})
    return input


REGISTRY = ActionRegistry(
    {
        "print": print_action,
        "add_random_value": add_random_value,
        "fail_random": fail_random,
    }
)
