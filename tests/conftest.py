from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from stubsync.models import StubsConfiguration, default_configuration  # noqa: E402

EXAMPLE_A = """---
stubs:
  - link: "cite x"
    anchor: "^link-ab12"
---
Some text ^link-ab12 here.
"""

MIXED_DOCUMENT = """---
title: Pricing notes
stubs:
  - link: "Add citation for OAuth spec"
    anchor: "^stub-cite01"
  - controversy:
      description: "Pricing model disagreement"
      stub_form: blocking
      anchor: "^stub-price1"
  - type: question
    description: "Who owns the rollout?"
  - todo: "Write the summary"
    anchor: "^stub-gone99"
tags: [draft]
---
# Pricing

OAuth is the standard. ^stub-cite01
The tiers are contested. ^stub-price1
A stray marker ^stub-stray1 sits here.

```
^stub-fenced is code
```
"""


@pytest.fixture
def config() -> StubsConfiguration:
    return default_configuration()


@pytest.fixture
def example_a() -> str:
    return EXAMPLE_A


@pytest.fixture
def mixed_document() -> str:
    return MIXED_DOCUMENT
