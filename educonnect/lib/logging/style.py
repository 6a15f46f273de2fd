from pygments.style import Style
from pygments.token import Keyword, Name, Number, Punctuation, String, Token


class LogStyle(Style):
    """Muted palette for the JSON extras appended to log lines."""

    styles = {
        Token: "#bcbcbc",
        Punctuation: "#808080",
        Name.Tag: "#5fafd7",
        String: "#87af87",
        String.Double: "#87af87",
        Number: "#d7af5f",
        Keyword.Constant: "#af87d7",
    }
