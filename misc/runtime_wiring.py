from __future__ import annotations

from misc.commands.command_deps import CommandDeps
from misc.commands.command_deps import CommandGates
from misc.commands.commands_gym import register as register_gym
from misc.discord_gates import in_standard_text_channel
from misc.events_runtime import register_runtime_events
from misc.runtime_deps import RuntimeBootDeps
from misc.runtime_deps import RuntimeDeps


def user_is_admin(user) -> bool:
    perms = getattr(user, "guild_permissions", None)
    return bool(getattr(perms, "administrator", False))


def wire_bot_runtime(
    bot,
    *,
    guild_id: int,
    status_manager,
    gate_service,
    rules_service,
    planning_service,
    reminder_service,
    reminder_rules: tuple,
    scheduler,
    rules_panel_factory,
) -> None:
    command_deps = CommandDeps(
        guild_id=guild_id,
        status_manager=status_manager,
        planning_service=planning_service,
        rules_panel_factory=rules_panel_factory,
    )
    command_gates = CommandGates(
        in_text_channel=in_standard_text_channel,
        user_is_admin=user_is_admin,
    )

    register_gym(
        bot,
        deps=command_deps,
        gates=command_gates,
    )

    register_runtime_events(
        bot,
        deps=RuntimeDeps(
            status_manager=status_manager,
            gate_service=gate_service,
            rules_service=rules_service,
            planning_service=planning_service,
        ),
        boot=RuntimeBootDeps(
            guild_id=guild_id,
            scheduler=scheduler,
            reminder_service=reminder_service,
            reminder_rules=tuple(reminder_rules),
        ),
    )
