"""
Audit log vocabulary
"""

# Points
ACTION_AWARD_POINTS = "AWARD_POINTS"
ACTION_DEDUCT_POINTS = "DEDUCT_POINTS"
ACTION_CHORE_POINTS_EARNED = "CHORE_POINTS_EARNED"
ACTION_HABIT_POINTS_EARNED = "HABIT_POINTS_EARNED"
ACTION_UNDO_HABIT = "UNDO_HABIT"

# Rewards
ACTION_REQUEST_REDEMPTION = "REQUEST_REDEMPTION"
ACTION_APPROVE_REDEMPTION = "APPROVE_REDEMPTION"
ACTION_DENY_REDEMPTION = "DENY_REDEMPTION"
ACTION_CREATE_REWARD = "CREATE_REWARD"
ACTION_UPDATE_REWARD = "UPDATE_REWARD"
ACTION_DELETE_REWARD = "DELETE_REWARD"
ACTION_UPDATE_POINTS_SETTINGS = "UPDATE_POINTS_SETTINGS"

# Members
ACTION_CREATE_MEMBER = "CREATE_MEMBER"
ACTION_UPDATE_MEMBER = "UPDATE_MEMBER"
ACTION_DELETE_MEMBER = "DELETE_MEMBER"

# Chores
ACTION_CREATE_CHORE = "CREATE_CHORE"
ACTION_UPDATE_CHORE = "UPDATE_CHORE"
ACTION_DELETE_CHORE = "DELETE_CHORE"
ACTION_COMPLETE_CHORE = "COMPLETE_CHORE"
ACTION_UNDO_CHORE = "UNDO_CHORE"

# Settings / PIN
ACTION_UPDATE_SETTINGS = "UPDATE_SETTINGS"
ACTION_CHANGE_PIN = "CHANGE_PIN"
ACTION_ENABLE_PIN = "ENABLE_PIN"
ACTION_DISABLE_PIN = "DISABLE_PIN"

# Backups
ACTION_CREATE_BACKUP = "CREATE_BACKUP"
ACTION_RESTORE_BACKUP = "RESTORE_BACKUP"
ACTION_DELETE_BACKUP = "DELETE_BACKUP"

ACTION_DESCRIPTIONS: dict[str, str] = {
    ACTION_AWARD_POINTS: "Points awarded",
    ACTION_DEDUCT_POINTS: "Points deducted",
    ACTION_CHORE_POINTS_EARNED: "Points earned from chore",
    ACTION_HABIT_POINTS_EARNED: "Points earned from habit",
    ACTION_UNDO_HABIT: "Habit completion undone",
    ACTION_REQUEST_REDEMPTION: "Reward redemption requested",
    ACTION_APPROVE_REDEMPTION: "Reward redemption approved",
    ACTION_DENY_REDEMPTION: "Reward redemption denied",
    ACTION_CREATE_REWARD: "Reward created",
    ACTION_UPDATE_REWARD: "Reward updated",
    ACTION_DELETE_REWARD: "Reward deleted",
    ACTION_UPDATE_POINTS_SETTINGS: "Points settings updated",
    ACTION_CREATE_MEMBER: "Family member added",
    ACTION_UPDATE_MEMBER: "Family member updated",
    ACTION_DELETE_MEMBER: "Family member removed",
    ACTION_CREATE_CHORE: "Chore created",
    ACTION_UPDATE_CHORE: "Chore updated",
    ACTION_DELETE_CHORE: "Chore deleted",
    ACTION_COMPLETE_CHORE: "Chore completed",
    ACTION_UNDO_CHORE: "Chore completion undone",
    ACTION_UPDATE_SETTINGS: "Settings updated",
    ACTION_CHANGE_PIN: "PIN changed",
    ACTION_ENABLE_PIN: "PIN protection enabled",
    ACTION_DISABLE_PIN: "PIN protection disabled",
    ACTION_CREATE_BACKUP: "Created backup",
    ACTION_RESTORE_BACKUP: "Restored from backup",
    ACTION_DELETE_BACKUP: "Deleted backup",
}

AUDIT_ACTIONS = list(ACTION_DESCRIPTIONS)

# Entity types
ENTITY_POINTS = "POINTS"
ENTITY_REWARD = "REWARD"
ENTITY_REDEMPTION = "REDEMPTION"
ENTITY_CHORE = "CHORE"
ENTITY_HABIT = "HABIT"
ENTITY_MEMBER = "MEMBER"
ENTITY_SETTINGS = "SETTINGS"
ENTITY_BACKUP = "BACKUP"

ENTITY_TYPES = [
    ENTITY_POINTS,
    ENTITY_REWARD,
    ENTITY_REDEMPTION,
    ENTITY_CHORE,
    ENTITY_HABIT,
    ENTITY_MEMBER,
    ENTITY_SETTINGS,
    ENTITY_BACKUP,
]


def describe_action(action: str) -> str:
    return ACTION_DESCRIPTIONS.get(action, action)
