from __future__ import annotations

from typing import Dict

from survey_crosstab.core.categories import Language

# ---------------------------------------------------------------------------
# Report strings
#
# Every piece of fixed text that ends up in a table header, cell or footer is
# looked up here by key. Japanese is the reporting language of record; the
# English column mirrors it for analysts who do not read Japanese.
# ---------------------------------------------------------------------------

_CATALOG: Dict[str, Dict[Language, str]] = {
    # Table scaffolding
    "options": {Language.EN: "Options", Language.JA: "選択肢"},
    "count": {Language.EN: "Count", Language.JA: "件数"},
    "percentage": {Language.EN: "Percentage", Language.JA: "割合"},
    "total": {Language.EN: "Total", Language.JA: "計"},
    "null": {Language.EN: "NULL", Language.JA: "NULL"},

    # Field types as shown in crosstab headers
    "type.pulldown": {Language.EN: "Pulldown", Language.JA: "プルダウン"},
    "type.radio": {Language.EN: "Radio button", Language.JA: "ラジオボタン"},
    "type.multiselect": {Language.EN: "Multi-select", Language.JA: "マルチセレクト"},
    "type.text": {Language.EN: "Text", Language.JA: "テキスト"},
    "type.textarea": {Language.EN: "Text area", Language.JA: "テキストエリア"},
    "type.html": {Language.EN: "HTML", Language.JA: "HTML"},

    # Static field titles (raw tables, filter names)
    "title.id": {Language.EN: "Post ID", Language.JA: "投稿id"},
    "title.user_id": {Language.EN: "User ID", Language.JA: "ユーザid"},
    "title.created_at": {Language.EN: "Posted at", Language.JA: "投稿日"},
    "title.purchase_status": {Language.EN: "Purchase status", Language.JA: "購入ステータス"},
    "title.gender": {Language.EN: "Gender", Language.JA: "性別"},
    "title.prefecture": {Language.EN: "Prefecture", Language.JA: "現住所"},
    "title.region": {Language.EN: "Region", Language.JA: "地域"},
    "title.age": {Language.EN: "Age", Language.JA: "年齢"},
    "title.age_group": {Language.EN: "Age group", Language.JA: "年代"},
    "title.age_group_1060": {
        Language.EN: "Age group (10s or under ~ 60s or above)",
        Language.JA: "年代(10代以下～60代以上)",
    },
    "title.age_group_1070": {
        Language.EN: "Age group (10s or under ~ 70s or above)",
        Language.JA: "年代(10代以下～70代以上)",
    },
    "title.job": {Language.EN: "Job", Language.JA: "職業"},
    "title.marital_status": {Language.EN: "Marital status", Language.JA: "未既婚"},
    "title.children": {Language.EN: "Number of children", Language.JA: "子供の人数"},
    "title.marital_status_and_children": {
        Language.EN: "Marital status x children",
        Language.JA: "未既婚×子有無",
    },
    "title.yearly_income": {Language.EN: "Household income", Language.JA: "世帯年収"},

    # Category labels in crosstab headers
    "crosstab.age_range": {Language.EN: "Age group", Language.JA: "年代"},
    "crosstab.gender": {Language.EN: "Gender", Language.JA: "性別"},
    "crosstab.marital_status": {Language.EN: "Marital status", Language.JA: "未既婚"},
    "crosstab.children": {Language.EN: "Number of children", Language.JA: "子供の人数"},
    "crosstab.job": {Language.EN: "Job", Language.JA: "職業"},
    "crosstab.region": {Language.EN: "Region", Language.JA: "地域"},
    "crosstab.household_income": {Language.EN: "Income", Language.JA: "年収"},

    # Summary (graph) table column titles
    "computed.label.age_group_1060": {Language.EN: "Age group label", Language.JA: "年代ラベル"},
    "computed.label.age_group_1070": {Language.EN: "Age group label", Language.JA: "年代ラベル"},
    "computed.label.gender": {Language.EN: "Gender label", Language.JA: "性別ラベル"},
    "computed.label.marital_status": {Language.EN: "Marital status label", Language.JA: "未既婚ラベル"},
    "computed.label.children": {Language.EN: "Children label", Language.JA: "子供の人数ラベル"},
    "computed.label.job": {Language.EN: "Job label", Language.JA: "職業ラベル"},
    "computed.label.region": {Language.EN: "Region label", Language.JA: "地域ラベル"},
    "computed.label.yearly_income": {Language.EN: "Household income label", Language.JA: "世帯年収ラベル"},
    "computed.value": {Language.EN: "Value", Language.JA: "値"},
    "computed.display": {Language.EN: "Display value", Language.JA: "表示用値"},
    "computed.graph_label": {Language.EN: "Graph label", Language.JA: "グラフ用ラベル"},
    "computed.percentage": {Language.EN: "Percentage", Language.JA: "割合"},
    "computed.display_format": {Language.EN: "{n}", Language.JA: "{n}件"},
}


def get_text(key: str, lng: Language) -> str:
    """Look up a report string. Unknown keys are a programming error."""
    try:
        entry = _CATALOG[key]
    except KeyError as exc:
        raise KeyError(f"No report string registered for '{key}'") from exc
    return entry.get(lng) or entry[Language.EN]
