from rules_timing.components.trigger import AbilityTier

# Canonical event window step order. Fixed; windows never reorder these.
EVENT_WINDOW_STEPS = (
    "set_current",
    "check_condition",
    AbilityTier.WOULD_INTERRUPT.value,
    "create_contingent_events",
    AbilityTier.FORCED_INTERRUPT.value,
    AbilityTier.INTERRUPT.value,
    "other_effects",
    "pre_resolution_effects",
    "execute_handlers",
    "check_game_state",
    "then_abilities",
    AbilityTier.FORCED_REACTION.value,
    AbilityTier.REACTION.value,
    "restore_previous",
)

# Tiers opened by a then window; reaction tiers belong to the parent batch.
THEN_WINDOW_TIERS = (
    AbilityTier.WOULD_INTERRUPT,
    AbilityTier.FORCED_INTERRUPT,
    AbilityTier.INTERRUPT,
)

# Suffix of the notification broadcast per event before handlers run.
OTHER_EFFECTS_SUFFIX = "otherEffects"

# Runaway guard: steps a single continue_processing call may execute.
MAX_PIPELINE_ITERATIONS = 10_000

# Choice token meaning "decline to trigger anything".
PASS = "pass"
