from portal.models.account import Account
from portal.models.identifier_mapping import IdentifierMapping
from portal.models.patient import PatientProfile, PROFILE_SECTIONS
from portal.models.doctor import DoctorProfile, VerifiedDoctor
from portal.models.today_entry import TodayEntry
from portal.models.revoked_token import RevokedToken

__all__ = ["Account", "IdentifierMapping", "PatientProfile", "PROFILE_SECTIONS", "DoctorProfile",
           "VerifiedDoctor", "TodayEntry", "RevokedToken"]
