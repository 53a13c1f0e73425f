#!/usr/bin/env python3
"""
Complete Pipeline Demo: Template -> Edits -> Table Import -> Analysis -> Schema

Shows the full workflow:
1. Start a store from the configured template
2. Apply edits in one batch
3. Convert to a wizard and import a table as a repeating group
4. Analyze the document
5. Generate a JSON Schema and a YAML snapshot
"""

import logging
import sys

from formtree.analyzer import analyze_document
from formtree.backends import save_schema_file, schema_to_json
from formtree.config import load_config
from formtree.serialization import document_to_yaml
from formtree.store import FormStore
from formtree.tabular import group_from_table, parse_table_string

TEAM_CSV = """fullName,email,role
Ada Lovelace,ada@example.com,admin
Alan Turing,alan@example.com,member
Grace Hopper,grace@example.com,member
"""


def main():
    config = load_config(sys.argv[1] if len(sys.argv) > 1 else None)
    logging.basicConfig(level=config.log_level)

    print("=" * 80)
    print("FORM BUILDER DEMO: Template -> Edits -> Import -> Analysis -> Schema")
    print("=" * 80)

    # =========================================================================
    # STEP 1: Store
    # =========================================================================
    print("\n1. CREATING STORE...")
    store = FormStore(config=config)
    store.subscribe(lambda doc: print(f"   · commit: {type(doc).__name__}"))
    print(f"   ✓ Shape: {type(store.document).__name__}")
    print(f"   ✓ Fields: {store.validation.total_fields}")

    # =========================================================================
    # STEP 2: Batched edits
    # =========================================================================
    print("\n2. EDITING (one batch)...")
    store.batch_append([
        {"field_type": "Input", "name": "company", "label": "Company"},
        [
            {"field_type": "Input", "name": "city", "label": "City"},
            {"field_type": "Input", "name": "zip", "label": "ZIP", "required": False},
        ],
    ])
    print(f"   ✓ Fields: {store.validation.total_fields}")

    # =========================================================================
    # STEP 3: Wizard + table import
    # =========================================================================
    print("\n3. CONVERTING TO WIZARD AND IMPORTING TEAM...")
    with store.batch():
        store.convert_to_multi_step(2)
        rows = parse_table_string(TEAM_CSV)
        store.add_element(group_from_table(rows, name="team", label="Team"), step_index=1)
    print(f"   ✓ Steps: {len(store.document.steps)}")

    # =========================================================================
    # STEP 4: Analysis
    # =========================================================================
    print("\n4. ANALYZING DOCUMENT...")
    report = analyze_document(store.document)
    print(f"   ✓ Groups: {report.total_groups} ({report.total_entries} entries)")
    print(f"   ✓ Field types: {report.field_type_usage}")
    for warning in report.warnings:
        print(f"      - {warning}")

    # =========================================================================
    # STEP 5: Outputs
    # =========================================================================
    print("\n5. GENERATING OUTPUTS...")
    filename = f"{store.form_name}.schema.json"
    save_schema_file(store.document, filename, store.schema_name)
    print(f"   ✓ Saved {filename}")
    print("-" * 80)
    for line in schema_to_json(store.document, store.schema_name).split("\n")[:20]:
        print(f"   {line}")
    print("-" * 80)
    print(f"   YAML snapshot: {len(document_to_yaml(store.document).splitlines())} lines")

    store.dispose()
    print("\n" + "=" * 80)


if __name__ == "__main__":
    main()
