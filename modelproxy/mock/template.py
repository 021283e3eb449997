"""Template-driven mock data generator (Mock.js template subset).

Architectural role:
    Built-in `mockjs` engine. Turns a rule fixture into generated data using
    property rules encoded in keys and `@placeholder` values.

Property rules (key `name|rule`):
    - `name|count`: strings repeated, lists repeated, numbers set to `count`,
      `name|1` on a list picks one item.
    - `name|min-max`: same with a random count; numbers drawn from the range.
    - `name|min-max.dmin-dmax`: float in range with dmin..dmax decimals.
    - `name|+step`: numbers increase by `step` on each generation; lists are
      walked in order.
    - Booleans: `name|1` is a fair coin, `name|min-max` keeps the value with
      probability min/(min+max).
    - Dicts: `name|count` / `name|min-max` picks that many properties.

Placeholders:
    `@boolean @natural @integer @float @string @word @sentence @guid @id @date
    @datetime @email @url`, optionally with `(a, b)` arguments. A string made of
    exactly one placeholder yields the typed value; placeholders embedded in
    text are substituted as strings. Unknown placeholders are left verbatim.

Determinism:
    Pass `seed` to get reproducible output.
"""

import datetime
import random
import re
import string
import uuid
from typing import Any

_RULE_PATTERN = re.compile(r"^(?P<name>[^|]+)\|(?:(?P<step>\+\d+)|(?P<min>\d+)(?:-(?P<max>\d+))?(?:\.(?P<dmin>\d+)(?:-(?P<dmax>\d+))?)?)$")
_PLACEHOLDER_PATTERN = re.compile(r"@([a-zA-Z]+)(?:\(([^)]*)\))?")
_INDEX_PATTERN = re.compile(r"\[\d+\]")

_WORDS = (
    "lorem", "ipsum", "dolor", "sit", "amet", "consectetur", "adipiscing",
    "elit", "sed", "do", "eiusmod", "tempor", "incididunt", "ut", "labore",
)


class TemplateEngine:
    """Generate data from Mock.js-style templates."""

    def __init__(self, seed: int | None = None) -> None:
        self._random = random.Random(seed)
        self._increments: dict[str, Any] = {}
        self._id_counter = 0

    def generate(self, template: Any) -> Any:
        return self._generate(template, path="")

    def _generate(self, template: Any, path: str) -> Any:
        if isinstance(template, dict):
            result = {}
            for key, value in template.items():
                name, generated = self._generate_property(str(key), value, f"{path}.{key}")
                result[name] = generated
            return result
        if isinstance(template, list):
            return [self._generate(item, f"{path}[{i}]") for i, item in enumerate(template)]
        if isinstance(template, str):
            return self._render_placeholders(template)
        return template

    def _generate_property(self, key: str, value: Any, path: str) -> tuple[str, Any]:
        match = _RULE_PATTERN.match(key)
        if not match:
            return key, self._generate(value, path)

        name = match.group("name")
        if match.group("step"):
            # one counter per property, shared by every list item
            counter_key = _INDEX_PATTERN.sub("", path)
            return name, self._increment(counter_key, value, int(match.group("step")[1:]))

        low = int(match.group("min"))
        high = int(match.group("max")) if match.group("max") else None
        count = self._random.randint(low, high) if high is not None and high >= low else low

        if isinstance(value, bool):
            if high is None:
                return name, self._random.random() < 0.5
            keep = low / (low + high) if (low + high) else 0.5
            return name, value if self._random.random() < keep else not value

        if isinstance(value, (int, float)):
            if match.group("dmin") is not None:
                return name, self._float(low, high, match.group("dmin"), match.group("dmax"))
            return name, count

        if isinstance(value, str):
            return name, "".join(self._render_placeholders(value) for _ in range(count))

        if isinstance(value, list):
            if not value:
                return name, []
            if high is None and low == 1:
                return name, self._generate(self._random.choice(value), path)
            items = []
            for i in range(count):
                for j, item in enumerate(value):
                    items.append(self._generate(item, f"{path}[{i}][{j}]"))
            return name, items

        if isinstance(value, dict):
            keys = list(value)
            picked = self._random.sample(keys, min(count, len(keys)))
            return name, self._generate({k: value[k] for k in keys if k in picked}, path)

        return name, value

    def _increment(self, path: str, value: Any, step: int) -> Any:
        if isinstance(value, list):
            index = self._increments.get(path, 0)
            self._increments[path] = index + step
            return self._generate(value[index % len(value)], path) if value else None
        current = self._increments.get(path, value)
        self._increments[path] = current + step
        return current

    def _float(self, low: int, high: int | None, dmin: str, dmax: str | None) -> float:
        integer = self._random.randint(low, high) if high is not None else low
        decimals = self._random.randint(int(dmin), int(dmax)) if dmax else int(dmin)
        if decimals == 0:
            return float(integer)
        fraction = "".join(self._random.choice(string.digits) for _ in range(decimals - 1))
        fraction += self._random.choice("123456789")
        return float(f"{integer}.{fraction}")

    def _render_placeholders(self, text: str) -> Any:
        whole = _PLACEHOLDER_PATTERN.fullmatch(text)
        if whole:
            return self._placeholder(whole.group(1), whole.group(2), whole.group(0))
        return _PLACEHOLDER_PATTERN.sub(
            lambda m: str(self._placeholder(m.group(1), m.group(2), m.group(0))), text
        )

    def _placeholder(self, name: str, raw_args: str | None, original: str) -> Any:
        args = [a.strip().strip("'\"") for a in raw_args.split(",")] if raw_args else []
        handler = getattr(self, f"_ph_{name.lower()}", None)
        if handler is None:
            return original
        return handler(*args)

    def _range_args(self, args, low: int, high: int) -> tuple[int, int]:
        if len(args) >= 2:
            return int(args[0]), int(args[1])
        if len(args) == 1:
            return int(args[0]), high
        return low, high

    def _ph_boolean(self, *args):
        return self._random.random() < 0.5

    def _ph_natural(self, *args):
        low, high = self._range_args(args, 0, 9007199254740991)
        return self._random.randint(low, high)

    def _ph_integer(self, *args):
        low, high = self._range_args(args, -9007199254740991, 9007199254740991)
        return self._random.randint(low, high)

    def _ph_float(self, *args):
        low, high = self._range_args(args[:2], 0, 1000)
        return round(self._random.uniform(low, high), 2)

    def _ph_string(self, *args):
        low, high = self._range_args(args, 3, 7)
        length = self._random.randint(low, high)
        return "".join(self._random.choice(string.ascii_letters) for _ in range(length))

    def _ph_word(self, *args):
        low, high = self._range_args(args, 3, 10)
        length = self._random.randint(low, high)
        return "".join(self._random.choice(string.ascii_lowercase) for _ in range(length))

    def _ph_sentence(self, *args):
        low, high = self._range_args(args, 4, 12)
        words = [self._random.choice(_WORDS) for _ in range(self._random.randint(low, high))]
        return " ".join(words).capitalize() + "."

    def _ph_guid(self, *args):
        return str(uuid.UUID(int=self._random.getrandbits(128), version=4))

    def _ph_id(self, *args):
        self._id_counter += 1
        return str(self._id_counter)

    def _ph_date(self, *args):
        return self._random_datetime().strftime("%Y-%m-%d")

    def _ph_datetime(self, *args):
        return self._random_datetime().strftime("%Y-%m-%d %H:%M:%S")

    def _ph_email(self, *args):
        return f"{self._ph_word(3, 8)}@{self._ph_word(3, 8)}.com"

    def _ph_url(self, *args):
        return f"http://{self._ph_word(3, 8)}.com/{self._ph_word(3, 8)}"

    def _random_datetime(self) -> datetime.datetime:
        seconds = self._random.randint(0, 60 * 60 * 24 * 365 * 30)
        return datetime.datetime(2000, 1, 1) + datetime.timedelta(seconds=seconds)
