# agenda/core/policy.py
"""
Product policy for the clinic grid. These are tuned values, not derived ones:
change them here and every consumer (grid, availability, drag, recurrence) follows.
"""
from __future__ import annotations
from zoneinfo import ZoneInfo

LOCAL_TZ = ZoneInfo("Europe/Rome")

# Visible window of the day/week grid: 07:00 -> 22:00
VISIBLE_START_HOUR = 7
VISIBLE_END_HOUR = 22
VISIBLE_WINDOW_MINUTES = (VISIBLE_END_HOUR - VISIBLE_START_HOUR) * 60

# ISO weekdays 1=Mon .. 7=Sun. The week view shows Mon-Sat; Sunday is never
# offered, neither on the grid nor in recurrences.
SUNDAY = 7
WORKING_WEEKDAYS = (1, 2, 3, 4, 5, 6)
DAYS_PER_WEEK_VIEW = len(WORKING_WEEKDAYS)

# Availability
SLOT_STEP_MINUTES = 30          # candidates start on every half hour
SLOT_LENGTH_MINUTES = 60        # one-hour candidate slots
CELL_LENGTH_MINUTES = 30        # half-hour click/drop cells
SUGGESTION_LEAD_MINUTES = 10    # quick-create skips slots starting within 10'

# Occupancy forecast bands (percent of the visible window)
OCCUPANCY_HIGH_THRESHOLD = 40.0
OCCUPANCY_MEDIUM_THRESHOLD = 20.0
RECOMMENDATION_HIGH = "ALTA OCCUPAZIONE"
RECOMMENDATION_MEDIUM = "MEDIA OCCUPAZIONE"
RECOMMENDATION_LOW = "BASSA OCCUPAZIONE"

# Grid geometry: one minute maps to one pixel of the timeline
PIXELS_PER_MINUTE = 1.0
MIN_EVENT_HEIGHT = 44
DRAG_ROUNDING_MINUTES = 5

# Recurrence
RECURRENCE_CAP = 200

# Pricing
DEFAULT_CLINIC_SITE = "Studio Pontecorvo"
CLINIC_ADDRESSES = {
    "Studio Pontecorvo": "Pontecorvo, Via Galileo Galilei 5, dietro il Bar Principe",
}
DOMICILE_ADDRESS_MIN_LENGTH = 5
