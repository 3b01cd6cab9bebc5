from enum import Enum

class RuleType(str, Enum):
    participant_tiers = "participant_tiers"
    time_slots = "time_slots"
    day_of_week = "day_of_week"
    seasonal = "seasonal"
    duration_multiplier = "duration_multiplier"
