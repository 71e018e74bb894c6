"""Enumerated values shared by request models and services."""

from typing import Literal, get_args

Role = Literal["ADMIN", "ORGANIZER", "ATHLETE", "VIEWER"]
ContentStatus = Literal["DRAFT", "PUBLISHED", "CANCELLED"]
RaceType = Literal["TRAIL", "ULTRA", "VERTICAL", "SKYRUNNING", "CANICROSS"]
EditionStatus = Literal["UPCOMING", "ONGOING", "FINISHED", "CANCELLED"]
RegistrationStatus = Literal["NOT_OPEN", "OPEN", "FULL", "CLOSED"]
ParticipationStatus = Literal["INTERESTED", "REGISTERED", "CONFIRMED", "COMPLETED", "DNS", "DNF", "DSQ"]
ParticipantStatus = Literal["REGISTERED", "CONFIRMED", "DNS", "DNF", "DSQ", "FINISHED"]
Language = Literal["ES", "EN", "IT", "CA", "FR", "DE"]
SortOrder = Literal["asc", "desc"]

ROLES = get_args(Role)
CONTENT_STATUSES = get_args(ContentStatus)
RACE_TYPES = get_args(RaceType)
EDITION_STATUSES = get_args(EditionStatus)
REGISTRATION_STATUSES = get_args(RegistrationStatus)
PARTICIPATION_STATUSES = get_args(ParticipationStatus)
PARTICIPANT_STATUSES = get_args(ParticipantStatus)
LANGUAGES = get_args(Language)

ADMIN = "ADMIN"
ORGANIZER = "ORGANIZER"
ATHLETE = "ATHLETE"

DEFAULT_LANGUAGE = "ES"

# Fields of a user row that are safe to expose
PUBLIC_USER_FIELDS = (
    "id", "email", "username", "first_name", "last_name", "role", "language",
    "avatar", "bio", "phone", "country", "city", "is_active", "created_at",
)
# Subset shown on content owned by someone else
CREATOR_FIELDS = ("id", "username", "first_name", "last_name", "avatar")
