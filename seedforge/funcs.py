"""
Generator factories for refinements.

    from seedforge.funcs import funcs

    refinements = {
        "users": {
            "count": 20,
            "columns": {"age": funcs.int(min_value=18, max_value=90), "bio": False},
            "with": {"posts": [{"weight": 0.7, "count": [1, 2]}, {"weight": 0.3, "count": 5}]},
        },
    }
"""

from types import SimpleNamespace

from seedforge.base import CustomGenerator, GenerateDefault
from seedforge.geometry import (
    GenerateLine,
    GeneratePoint,
    GenerateUniqueLine,
    GenerateUniquePoint,
    GenerateUniqueVector,
    GenerateVector,
)
from seedforge.numeric import (
    GenerateBitString,
    GenerateBoolean,
    GenerateInet,
    GenerateInt,
    GenerateIntPrimaryKey,
    GenerateNumber,
    GenerateUniqueBitString,
    GenerateUniqueInet,
    GenerateUniqueNumber,
)
from seedforge.people import (
    GenerateEmail,
    GenerateFirstName,
    GenerateFullName,
    GenerateJobTitle,
    GenerateLastName,
    GeneratePhoneNumber,
    GenerateUniqueFirstName,
    GenerateUniqueFullName,
    GenerateUniqueLastName,
)
from seedforge.places import (
    GenerateCity,
    GenerateCompanyName,
    GenerateCountry,
    GeneratePostcode,
    GenerateState,
    GenerateStreetAddress,
    GenerateUniqueCity,
    GenerateUniqueCompanyName,
    GenerateUniqueCountry,
    GenerateUniquePostcode,
    GenerateUniqueStreetAddress,
)
from seedforge.temporal import (
    GenerateDate,
    GenerateDatetime,
    GenerateInterval,
    GenerateTime,
    GenerateTimestamp,
    GenerateTimestampInt,
    GenerateUniqueInterval,
    GenerateYear,
)
from seedforge.unique import GenerateUniqueInt
from seedforge.values import (
    GenerateEnum,
    GenerateJson,
    GenerateLoremIpsum,
    GenerateString,
    GenerateUniqueString,
    GenerateUUID,
    GenerateValuesFromArray,
    WeightedRandomGenerator,
)

funcs = SimpleNamespace(
    default=GenerateDefault,
    values_from_array=GenerateValuesFromArray,
    int_primary_key=GenerateIntPrimaryKey,
    number=GenerateNumber,
    unique_number=GenerateUniqueNumber,
    int=GenerateInt,
    unique_int=GenerateUniqueInt,
    boolean=GenerateBoolean,
    date=GenerateDate,
    time=GenerateTime,
    timestamp=GenerateTimestamp,
    datetime=GenerateDatetime,
    timestamp_int=GenerateTimestampInt,
    year=GenerateYear,
    json=GenerateJson,
    enum=GenerateEnum,
    interval=GenerateInterval,
    unique_interval=GenerateUniqueInterval,
    string=GenerateString,
    unique_string=GenerateUniqueString,
    uuid=GenerateUUID,
    first_name=GenerateFirstName,
    unique_first_name=GenerateUniqueFirstName,
    last_name=GenerateLastName,
    unique_last_name=GenerateUniqueLastName,
    full_name=GenerateFullName,
    unique_full_name=GenerateUniqueFullName,
    email=GenerateEmail,
    phone_number=GeneratePhoneNumber,
    country=GenerateCountry,
    unique_country=GenerateUniqueCountry,
    city=GenerateCity,
    unique_city=GenerateUniqueCity,
    street_address=GenerateStreetAddress,
    unique_street_address=GenerateUniqueStreetAddress,
    job_title=GenerateJobTitle,
    postcode=GeneratePostcode,
    unique_postcode=GenerateUniquePostcode,
    state=GenerateState,
    company_name=GenerateCompanyName,
    unique_company_name=GenerateUniqueCompanyName,
    lorem_ipsum=GenerateLoremIpsum,
    point=GeneratePoint,
    unique_point=GenerateUniquePoint,
    line=GenerateLine,
    unique_line=GenerateUniqueLine,
    bit_string=GenerateBitString,
    unique_bit_string=GenerateUniqueBitString,
    inet=GenerateInet,
    unique_inet=GenerateUniqueInet,
    vector=GenerateVector,
    unique_vector=GenerateUniqueVector,
    weighted_random=WeightedRandomGenerator,
    custom=CustomGenerator,
)
