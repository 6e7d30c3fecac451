"""
Pytest configuration and shared fixtures.
"""

import pandas as pd
import pytest

from match_scorer import Profile


@pytest.fixture
def mentee() -> Profile:
    """Mentee from the product's tag scoring example."""
    return Profile(id="mentee-1", tags=frozenset({"Break Into Industry", "Explore and Clarify"}))


@pytest.fixture
def mentors() -> list:
    """Mentors covering full, partial, none and empty tag overlap."""
    return [
        Profile(id="partial", tags=frozenset({"Break Into Industry", "Career Transition"})),
        Profile(id="full", tags=frozenset({"Break Into Industry", "Explore and Clarify"})),
        Profile(id="none", tags=frozenset({"Leadership", "Management"})),
        Profile(id="single", tags=frozenset({"Break Into Industry"})),
        Profile(id="empty"),
    ]


@pytest.fixture
def mentor_records() -> pd.DataFrame:
    """Loosely typed mentor rows as they come out of the record store."""
    return pd.DataFrame([
        {
            "UserID": "m1",
            "Name": "  Ada   Lovelace ",
            "Tags": "Break Into Industry; Leadership, leadership",
            "Industry": "Accounting",
            "YearExp": "7",
            "SeniorityLevel": "Senior",
            "UpdatedAt": "2025-03-02T10:00:00Z",
        },
        {
            "UserID": "m2",
            "Name": "Grace Hopper",
            "Tags": None,
            "Industry": "",
            "YearExp": "lots",
            "SeniorityLevel": None,
            "UpdatedAt": "not a date",
        },
        {
            "UserID": None,
            "Name": "No Id",
            "Tags": "Leadership",
            "Industry": "Finance",
            "YearExp": 3,
            "SeniorityLevel": "Junior",
            "UpdatedAt": None,
        },
    ])


@pytest.fixture
def bookings_df() -> pd.DataFrame:
    """Bookings around 2025-03-10 in Sydney (UTC+11 during daylight saving)."""
    return pd.DataFrame([
        # 2025-03-10 10:00 Sydney
        {"BookingID": "b1", "MeetingTime": "2025-03-09T23:00:00Z", "BookingStatus": "Confirmed",
         "InviteeID": "mentor-a", "SessionStatus": ""},
        # 2025-03-10 20:00 Sydney
        {"BookingID": "b2", "MeetingTime": "2025-03-10T09:00:00Z", "BookingStatus": "Pending",
         "InviteeID": "mentor-a", "SessionStatus": ""},
        # cancelled, same day
        {"BookingID": "b3", "MeetingTime": "2025-03-10T01:00:00Z", "BookingStatus": "Cancelled",
         "InviteeID": "mentor-b", "SessionStatus": ""},
        # 2025-03-11 10:00 Sydney (today)
        {"BookingID": "b4", "MeetingTime": "2025-03-10T23:00:00Z", "BookingStatus": "Rescheduled",
         "InviteeID": "mentor-a", "SessionStatus": ""},
        # 2025-03-09 10:00 Sydney (two days ago)
        {"BookingID": "b5", "MeetingTime": "2025-03-08T23:00:00Z", "BookingStatus": "Confirmed",
         "InviteeID": "mentor-b", "SessionStatus": ""},
        # unparseable time
        {"BookingID": "b6", "MeetingTime": "soon", "BookingStatus": "Confirmed",
         "InviteeID": "mentor-a", "SessionStatus": ""},
    ])
