from collections import OrderedDict
from typing import Dict, Iterable, List, Mapping

from app.enums.weekdays import day_name
from app.models.recurring_promotion import RecurringPromotion
from app.schemas.recurring_promotion import GroupedPromotion, RecurringPromotionCreate


def identity_key(row) -> tuple:
    """Rows sharing this key are siblings of one logical promotion."""
    return (row.offer_id, row.start_time, row.end_time, row.discount_percentage)


# ---------- WRITE PATH ----------

def decompose_promotion(
    business_user_id: str,
    data: RecurringPromotionCreate,
    days: Iterable[int],
) -> List[RecurringPromotion]:
    """One row per day, each carrying a single-day `days_of_week`."""
    return [
        RecurringPromotion(
            business_user_id=business_user_id,
            offer_id=data.offer_id,
            days_of_week=[day],
            start_time=data.start_time,
            end_time=data.end_time,
            discount_percentage=data.discount_percentage,
            is_active=True,
        )
        for day in days
    ]


# ---------- READ PATH ----------

def group_promotion_rows(
    rows: Iterable,
    offer_titles: Mapping[str, str],
    unknown_label: str,
) -> List[GroupedPromotion]:
    """
    Fold per-day rows back into one entry per identity key.

    Days are unioned, member ids keep encounter order and a group is active
    as soon as any member is active. Groups come out sorted by offer title,
    case-insensitively. Rows pointing at an offer missing from
    `offer_titles` get `unknown_label`.
    """
    groups: "OrderedDict[tuple, Dict]" = OrderedDict()

    for row in rows:
        key = identity_key(row)
        group = groups.get(key)
        if group is None:
            group = {
                "days": set(),
                "member_row_ids": [],
                "is_active": bool(row.is_active),
            }
            groups[key] = group
        elif not group["is_active"] and row.is_active:
            group["is_active"] = True

        group["days"].update(row.days_of_week or [])
        group["member_row_ids"].append(row.id)

    result = []
    for (offer_id, start_time, end_time, discount), group in groups.items():
        days = sorted(group["days"])
        result.append(
            GroupedPromotion(
                offer_id=offer_id,
                offer_title=offer_titles.get(offer_id) or unknown_label,
                start_time=start_time,
                end_time=end_time,
                discount_percentage=discount,
                days_of_week=days,
                day_names=[day_name(d) for d in days],
                member_row_ids=group["member_row_ids"],
                is_active=group["is_active"],
            )
        )

    result.sort(
        key=lambda g: (
            g.offer_title.casefold(),
            g.offer_id,
            g.start_time,
            g.end_time,
            g.discount_percentage,
        )
    )
    return result
