"""
Egyptian national ID decoding.

Layout of the 14 digits (0-based offsets)::

    0      century (2 = 1900s, 3 = 2000s)
    1-2    year of birth
    3-4    month of birth
    5-6    day of birth
    7-8    governorate code
    9-12   sequence; digit 12 is odd for males, even for females
    13     check digit (not verified)
"""

from datetime import date
from typing import Optional

from medportal.models import NationalIdResult

NATIONAL_ID_LENGTH = 14
CENTURIES = {"2": 1900, "3": 2000}
SEX_DIGIT_OFFSET = 12

GOVERNORATES = {
    "01": "Cairo", "02": "Alexandria", "03": "Port Said", "04": "Suez",
    "11": "Damietta", "12": "Dakahlia", "13": "Sharqia", "14": "Qalyubia",
    "15": "Kafr El Sheikh", "16": "Gharbia", "17": "Monufia", "18": "Beheira",
    "19": "Ismailia", "21": "Giza", "22": "Beni Suef", "23": "Faiyum",
    "24": "Minya", "25": "Asyut", "26": "Sohag", "27": "Qena", "28": "Aswan",
    "29": "Luxor", "31": "Red Sea", "32": "New Valley", "33": "Matrouh",
    "34": "North Sinai", "35": "South Sinai", "88": "Born abroad",
}

INVALID = NationalIdResult(valid=False)


def decode(national_id) -> NationalIdResult:
    """Validate the structure of *national_id* and decode its fields.

    Any structural failure (length, non-digit characters, century marker,
    impossible birth date) yields ``NationalIdResult(valid=False)``.
    """
    if not isinstance(national_id, str) or len(national_id) != NATIONAL_ID_LENGTH:
        return INVALID
    # str.isdigit() accepts non-ASCII digits such as Arabic-Indic numerals.
    if not all("0" <= ch <= "9" for ch in national_id):
        return INVALID

    century = CENTURIES.get(national_id[0])
    if century is None:
        return INVALID

    try:
        birth_date = date(
            century + int(national_id[1:3]),
            int(national_id[3:5]),
            int(national_id[5:7]),
        )
    except ValueError:
        return INVALID

    gov_code = national_id[7:9]
    sex = "male" if int(national_id[SEX_DIGIT_OFFSET]) % 2 == 1 else "female"

    return NationalIdResult(
        valid=True,
        birth_date=birth_date,
        sex=sex,
        century=century,
        governorate_code=gov_code,
        governorate=GOVERNORATES.get(gov_code),
        sequence=national_id[9:13],
        check_digit=national_id[13],
    )


def calculate_age(birth_date: date, today: Optional[date] = None) -> int:
    """Whole years between *birth_date* and *today* (defaults to today)."""
    today = today or date.today()
    age = today.year - birth_date.year
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        age -= 1
    return age
