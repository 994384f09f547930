"""
Built-in demographic categories.

Every category is an Enum whose members carry an English and a Japanese
label. Member declaration order is the tabulation order: it is the same for
every language and never depends on the data.

Each category exposes:
  - get_all()            ordered list of variants
  - display(lng)         localized label of one variant
  - category_name(lng)   localized name of the whole category
  - from_label(text)     reverse lookup by localized label, canonical name or alias
"""
from __future__ import annotations

from enum import Enum
from typing import Callable, Dict, List, Optional, Type, TypeVar

from survey_crosstab.core.errors import MissingOption

C = TypeVar("C", bound="CategoryEnum")


class Language(str, Enum):
    EN = "en"
    JA = "ja"

    @classmethod
    def from_code(cls, code: Optional[str]) -> "Language":
        """Resolve a language code. Anything other than 'ja' falls back to English."""
        if code is not None and str(code).strip().lower() == cls.JA.value:
            return cls.JA
        return cls.EN


def category(name_en: str, name_ja: str, aliases: Optional[Dict[str, str]] = None) -> Callable:
    """
    Attach the localized category name (and optional raw-value aliases) to a
    CategoryEnum subclass. Aliases map an input spelling to a member name.
    """
    def wrap(cls):
        cls._category_names = {Language.EN: name_en, Language.JA: name_ja}
        cls._aliases = {k.casefold(): v for k, v in (aliases or {}).items()}
        return cls
    return wrap


class CategoryEnum(Enum):
    def __init__(self, label_en: str, label_ja: str) -> None:
        self.label_en = label_en
        self.label_ja = label_ja

    def display(self, lng: Language) -> str:
        return self.label_ja if lng == Language.JA else self.label_en

    @classmethod
    def get_all(cls: Type[C]) -> List[C]:
        return list(cls)

    @classmethod
    def labels(cls, lng: Language) -> List[str]:
        return [member.display(lng) for member in cls]

    @classmethod
    def category_name(cls, lng: Language) -> str:
        return cls._category_names[lng]

    @classmethod
    def category_names(cls) -> List[str]:
        return [cls.__name__] + list(cls._category_names.values())

    @classmethod
    def from_label(cls: Type[C], text: str) -> C:
        """
        Find the member whose English label, Japanese label, canonical name or
        registered alias equals `text` (case-insensitive, surrounding
        whitespace ignored).
        """
        needle = str(text).strip().casefold()
        for member in cls:
            if needle in (member.label_en.casefold(), member.label_ja.casefold(), member.name.casefold()):
                return member
        alias = cls._aliases.get(needle)
        if alias is not None:
            return cls[alias]
        raise MissingOption(f"'{text}' is not a valid value for category {cls.__name__}.")


# ---------------------------------------------------------------------------
# Respondent attributes
# ---------------------------------------------------------------------------

@category("PurchaseStatus", "購入ステータス")
class PurchaseStatus(CategoryEnum):
    PURCHASED = ("Purchased", "購入済み")
    REJECTED = ("Rejected", "拒否済み")
    EVALUATED = ("Evaluated", "評価済み")


@category("Gender", "性別", aliases={"男": "MALE", "女": "FEMALE"})
class Gender(CategoryEnum):
    FEMALE = ("Female", "女性")
    MALE = ("Male", "男性")


@category("Marital Status", "配偶者の有無")
class MaritalStatus(CategoryEnum):
    MARRIED = ("Married", "既婚")
    SINGLE = ("Single", "未婚")


@category("Job", "仕事")
class Job(CategoryEnum):
    FULL_TIME_HOUSEWIFE = ("Full-time Housewife", "専業主婦（主夫）")
    PART_TIME = ("Part-time", "パート・アルバイト")
    EMPLOYEE_OFFICE = ("Employee (Office)", "会社員（事務系）")
    EMPLOYEE_OTHERS = ("Employee (Others)", "会社員（その他）")
    EMPLOYEE_TECH = ("Employee (Tech)", "会社員（技術系）")
    UNEMPLOYED = ("Unemployed", "無職")
    STUDENT = ("Student", "学生")
    SELF_EMPLOYED = ("Self-employed", "自営業")
    FREELANCER = ("Freelancer", "自由業")
    CIVIL_SERVANT = ("Civil Servant", "公務員")
    ENTREPRENEUR = ("Entrepreneur", "経営者・役員")
    OTHERS = ("Others", "その他")


# ---------------------------------------------------------------------------
# Places
# ---------------------------------------------------------------------------

@category("Region", "地域")
class Region(CategoryEnum):
    KANTO = ("Kanto", "関東")
    KANSAI = ("Kansai", "関西")
    CHUBU = ("Chubu", "中部")
    KYUSHU = ("Kyushu", "九州")
    CHUGOKU = ("Chugoku", "中国")
    TOHOKU = ("Tohoku", "東北")
    HOKKAIDO = ("Hokkaido", "北海道")
    SHIKOKU = ("Shikoku", "四国")


@category("Prefecture", "県", aliases={"Nigata": "NIIGATA"})
class Prefecture(CategoryEnum):
    AICHI = ("Aichi", "愛知県")
    AKITA = ("Akita", "秋田県")
    AOMORI = ("Aomori", "青森県")
    CHIBA = ("Chiba", "千葉県")
    EHIME = ("Ehime", "愛媛県")
    FUKUI = ("Fukui", "福井県")
    FUKUOKA = ("Fukuoka", "福岡県")
    FUKUSHIMA = ("Fukushima", "福島県")
    GIFU = ("Gifu", "岐阜県")
    GUNMA = ("Gunma", "群馬県")
    HIROSHIMA = ("Hiroshima", "広島県")
    HOKKAIDO = ("Hokkaido", "北海道")
    HYOGO = ("Hyogo", "兵庫県")
    IBARAKI = ("Ibaraki", "茨城県")
    ISHIKAWA = ("Ishikawa", "石川県")
    IWATE = ("Iwate", "岩手県")
    KAGAWA = ("Kagawa", "香川県")
    KAGOSHIMA = ("Kagoshima", "鹿児島県")
    KANAGAWA = ("Kanagawa", "神奈川県")
    KOCHI = ("Kochi", "高知県")
    KUMAMOTO = ("Kumamoto", "熊本県")
    KYOTO = ("Kyoto", "京都府")
    MIE = ("Mie", "三重県")
    MIYAGI = ("Miyagi", "宮城県")
    MIYAZAKI = ("Miyazaki", "宮崎県")
    NAGANO = ("Nagano", "長野県")
    NAGASAKI = ("Nagasaki", "長崎県")
    NARA = ("Nara", "奈良県")
    NIIGATA = ("Niigata", "新潟県")
    OITA = ("Oita", "大分県")
    OKAYAMA = ("Okayama", "岡山県")
    OKINAWA = ("Okinawa", "沖縄県")
    OSAKA = ("Osaka", "大阪府")
    SAGA = ("Saga", "佐賀県")
    SAITAMA = ("Saitama", "埼玉県")
    SHIGA = ("Shiga", "滋賀県")
    SHIMANE = ("Shimane", "島根県")
    SHIZUOKA = ("Shizuoka", "静岡県")
    TOCHIGI = ("Tochigi", "栃木県")
    TOKUSHIMA = ("Tokushima", "徳島県")
    TOKYO = ("Tokyo", "東京都")
    TOTTORI = ("Tottori", "鳥取県")
    TOYAMA = ("Toyama", "富山県")
    WAKAYAMA = ("Wakayama", "和歌山県")
    YAMAGATA = ("Yamagata", "山形県")
    YAMAGUCHI = ("Yamaguchi", "山口県")
    YAMANASHI = ("Yamanashi", "山梨県")

    @property
    def region(self) -> Region:
        return _REGION_BY_PREFECTURE[self]


_REGION_MEMBERS: Dict[Region, List[Prefecture]] = {
    Region.HOKKAIDO: [Prefecture.HOKKAIDO],
    Region.TOHOKU: [
        Prefecture.AKITA, Prefecture.AOMORI, Prefecture.FUKUSHIMA,
        Prefecture.IWATE, Prefecture.MIYAGI, Prefecture.YAMAGATA,
    ],
    Region.KANTO: [
        Prefecture.CHIBA, Prefecture.GUNMA, Prefecture.IBARAKI, Prefecture.KANAGAWA,
        Prefecture.SAITAMA, Prefecture.TOCHIGI, Prefecture.TOKYO,
    ],
    Region.CHUBU: [
        Prefecture.AICHI, Prefecture.FUKUI, Prefecture.GIFU, Prefecture.ISHIKAWA,
        Prefecture.NAGANO, Prefecture.NIIGATA, Prefecture.SHIZUOKA, Prefecture.TOYAMA,
        Prefecture.YAMANASHI,
    ],
    Region.KANSAI: [
        Prefecture.HYOGO, Prefecture.KYOTO, Prefecture.MIE, Prefecture.NARA,
        Prefecture.OSAKA, Prefecture.SHIGA, Prefecture.WAKAYAMA,
    ],
    Region.CHUGOKU: [
        Prefecture.HIROSHIMA, Prefecture.OKAYAMA, Prefecture.SHIMANE,
        Prefecture.TOTTORI, Prefecture.YAMAGUCHI,
    ],
    Region.SHIKOKU: [Prefecture.EHIME, Prefecture.KAGAWA, Prefecture.KOCHI, Prefecture.TOKUSHIMA],
    Region.KYUSHU: [
        Prefecture.FUKUOKA, Prefecture.KAGOSHIMA, Prefecture.KUMAMOTO, Prefecture.MIYAZAKI,
        Prefecture.NAGASAKI, Prefecture.OITA, Prefecture.OKINAWA, Prefecture.SAGA,
    ],
}

_REGION_BY_PREFECTURE: Dict[Prefecture, Region] = {
    pref: region for region, prefs in _REGION_MEMBERS.items() for pref in prefs
}


# ---------------------------------------------------------------------------
# Buckets derived from numeric attributes
# ---------------------------------------------------------------------------

@category("Children", "子供数")
class ChildrenRange(CategoryEnum):
    GROUP_0 = ("0", "0人")
    GROUP_1 = ("1", "1人")
    GROUP_2 = ("2", "2人")
    GROUP_3 = ("3", "3人")
    ABOVE_4 = ("4 or above", "4人以上")

    @classmethod
    def from_count(cls, children: int) -> "ChildrenRange":
        members = cls.get_all()
        return members[min(max(children, 0), len(members) - 1)]


@category("Age Range 1060", "年代1060")
class AgeRange1060(CategoryEnum):
    UNDER_10S = ("10s or under", "10代以下")
    GROUP_20S = ("20s", "20代")
    GROUP_30S = ("30s", "30代")
    GROUP_40S = ("40s", "40代")
    GROUP_50S = ("50s", "50代")
    ABOVE_60S = ("60s or above", "60代以上")

    @classmethod
    def from_age(cls, age: int) -> "AgeRange1060":
        return _bucket_by_decade(cls, age)


@category("Age Range 1070", "年代1070")
class AgeRange1070(CategoryEnum):
    UNDER_10S = ("10s or under", "10代以下")
    GROUP_20S = ("20s", "20代")
    GROUP_30S = ("30s", "30代")
    GROUP_40S = ("40s", "40代")
    GROUP_50S = ("50s", "50代")
    GROUP_60S = ("60s", "60代")
    ABOVE_70S = ("70s or above", "70代以上")

    @classmethod
    def from_age(cls, age: int) -> "AgeRange1070":
        return _bucket_by_decade(cls, age)


def _bucket_by_decade(cls, age: int):
    # First bucket covers everything below 20; the last one is open-ended.
    members = cls.get_all()
    idx = max(age // 10 - 1, 0)
    return members[min(idx, len(members) - 1)]


@category("Yearly Income Range", "年間収入の範囲")
class YearlyIncomeRange(CategoryEnum):
    BELOW_1_MIL = ("Below 1 million yen", "100万円未満")
    GROUP_1_TO_2_MIL = ("1~2 million yen", "100～200万円未満")
    GROUP_2_TO_3_MIL = ("2~3 million yen", "200～300万円未満")
    GROUP_3_TO_4_MIL = ("3~4 million yen", "300～400万円未満")
    GROUP_4_TO_5_MIL = ("4~5 million yen", "400～500万円未満")
    GROUP_5_TO_6_MIL = ("5~6 million yen", "500～600万円未満")
    GROUP_6_TO_7_MIL = ("6~7 million yen", "600～700万円未満")
    GROUP_7_TO_8_MIL = ("7~8 million yen", "700～800万円未満")
    GROUP_8_TO_9_MIL = ("8~9 million yen", "800～900万円未満")
    GROUP_9_TO_10_MIL = ("9~10 million yen", "900～1000万円未満")
    GROUP_10_TO_12_MIL = ("10~12 million yen", "1000～1200万円未満")
    GROUP_12_TO_15_MIL = ("12~15 million yen", "1200～1500万円未満")
    GROUP_15_TO_20_MIL = ("15~20 million yen", "1500～2000万円未満")
    ABOVE_20_MIL = ("20 million yen or above", "2000万円以上")

    @classmethod
    def from_income(cls, income_min: int, income_max: int) -> "YearlyIncomeRange":
        """
        Bucket a household by its declared income range. Both bounds must fall
        in the same bucket; a range spanning two buckets lands in the top one.
        """
        lower_bounds = [0] + _INCOME_UPPER_BOUNDS[:-1]
        for member, lower, upper in zip(cls.get_all(), lower_bounds, _INCOME_UPPER_BOUNDS):
            if lower <= income_min < upper and lower <= income_max < upper:
                return member
        return cls.ABOVE_20_MIL


# Exclusive upper bound (yen) of each income bucket but the last; each
# bucket starts where the previous one ends.
_INCOME_UPPER_BOUNDS = [
    1_000_000, 2_000_000, 3_000_000, 4_000_000, 5_000_000, 6_000_000, 7_000_000,
    8_000_000, 9_000_000, 10_000_000, 12_000_000, 15_000_000, 20_000_000,
]


@category("Marital Status and Children", "未既婚×子有無")
class FamilyStatus(CategoryEnum):
    MARRIED_WITH_CHILDREN = ("Married (with children)", "既婚(子あり)")
    MARRIED_NO_CHILDREN = ("Married (no children)", "既婚(子なし)")
    SINGLE_WITH_CHILDREN = ("Single (with children)", "未婚(子あり)")
    SINGLE_NO_CHILDREN = ("Single (no children)", "未婚(子なし)")

    @classmethod
    def from_status(cls, marital_status: MaritalStatus, children: int) -> "FamilyStatus":
        if marital_status == MaritalStatus.MARRIED:
            return cls.MARRIED_WITH_CHILDREN if children > 0 else cls.MARRIED_NO_CHILDREN
        return cls.SINGLE_WITH_CHILDREN if children > 0 else cls.SINGLE_NO_CHILDREN
