import textwrap

import pytest

from studyquiz.services.content_service import load_notes


STATE_NOTES = textwrap.dedent("""\
    # Terraform State

    Terraform stores the state of your managed infrastructure in `terraform.tfstate`.

    ## Practice Questions

    ### Question 1
    Which command shows the resources tracked in state?

    A) terraform show
    B) terraform state list
    C) terraform plan
    D) terraform graph

    <details>
    <summary>Show Answer</summary>

    **Answer: B**

    `terraform state list` lists every resource address in the state file.
    </details>

    ### Question 2
    What does state locking protect against?

    A) Concurrent writes to the same state
    B) Reading outputs
    C) Provider downloads
    D) Module caching

    <details>
    <summary>Show Answer</summary>

    **Answer: A**

    Explanation: Locking stops two runs from writing state at the same time.
    </details>

    ## Summary

    Remote backends such as azurerm support locking through blob leases.
    """)

META_NOTES = textwrap.dedent("""\
    # count

    Q: What does count.index give? A) The resource name B) The 0-based index Answer: B
    """)

BROKEN_NOTES = textwrap.dedent("""\
    ### Question 1
    Which block configures the azurerm provider?

    A) provider "azurerm" {}
    B) terraform {}

    <details>
    <summary>Show Answer</summary>
    """)


def write_notes(root, files):
    for relative, text in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    return root


@pytest.fixture
def notes_dir(tmp_path):
    """Two topics with valid quiz blocks plus a prose-only document"""
    return write_notes(tmp_path / "notes", {
        "state/state.md": STATE_NOTES,
        "meta-arguments/count.md": META_NOTES,
        "intro.md": "# Introduction\n\nNo quiz here.\n",
    })


@pytest.fixture
def broken_notes_dir(notes_dir):
    """notes_dir plus one document with an unclosed answer section"""
    return write_notes(notes_dir, {"providers/azurerm.md": BROKEN_NOTES})


@pytest.fixture
def catalog(notes_dir):
    return load_notes(notes_dir)


@pytest.fixture
def sessions_dir(tmp_path):
    return tmp_path / "sessions"
