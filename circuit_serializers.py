"""
회로 데이터 직렬화 헬퍼
=========================

TinyDB에 저장하고 JSON으로 돌려줄 수 있는 형태로 엔진 객체를 변환한다.
필드 원소, 열, 위트니스 격자, region, 복사 제약 동치류, 검사 위반 사항 등.
"""

from plonkish.column import ADVICE, FIXED, INSTANCE
from plonkish.dev import (
    CellNotAssigned,
    ConstraintNotSatisfied,
    CopyConstraintViolation,
    PublicInputMismatch,
)


# ─── 필드 원소 ───

def serialize_fr(val):
    """FR → str(int), 값이 없으면 None"""
    if val is None:
        return None
    return str(int(val))


def fr_short(val):
    """긴 필드 원소를 화면 표시용으로 줄인다 (앞 8자리…뒤 4자리)."""
    if val is None:
        return None
    s = str(int(val))
    if len(s) <= 16:
        return s
    return f"{s[:8]}…{s[-4:]}"


# ─── 열 ───

def serialize_column(column):
    return {"kind": column.kind, "index": column.index}


# ─── 격자 ───

def serialize_grid(prover):
    """MockProver의 격자를 행 단위 테이블로 변환한다.

    region에 속한 행만 포함한다. advice 값은 복사 제약 전파를 반영한다.
    """
    cs = prover.cs
    grid = prover.grid
    headers = (
        [str(c) for c in cs.columns(ADVICE)]
        + [str(c) for c in cs.columns(FIXED)]
        + [str(c) for c in cs.columns(INSTANCE)]
        + [f"s[{i}]" for i in range(cs.num_selectors)]
    )

    rows = []
    for name, start, end in prover.regions:
        for row in range(start, end):
            values = [fr_short(prover.advice_value(c, row)) for c in cs.columns(ADVICE)]
            values += [fr_short(grid.fixed[c.index][row]) for c in cs.columns(FIXED)]
            values += [fr_short(grid.instance[c.index][row]) for c in cs.columns(INSTANCE)]
            values += [1 if grid.selectors[i][row] else 0 for i in range(cs.num_selectors)]
            rows.append({"row": row, "region": name, "values": values})

    return {"headers": headers, "rows": rows}


def serialize_regions(regions):
    return [{"name": name, "start": start, "end": end} for name, start, end in regions]


def serialize_copy_classes(tracker):
    return [[str(cell) for cell in sorted(members)] for members in tracker.classes()]


# ─── 검사 위반 사항 ───

def serialize_failure(failure):
    """VerifyFailure → dict (kind + 위치 정보 + 메시지)"""
    data = {"kind": type(failure).__name__, "message": str(failure)}
    if isinstance(failure, ConstraintNotSatisfied):
        data.update({
            "gate": failure.gate,
            "constraint": failure.constraint_index,
            "row": failure.row,
            "region": failure.region,
        })
    elif isinstance(failure, CellNotAssigned):
        data.update({
            "gate": failure.gate,
            "column": serialize_column(failure.column),
            "row": failure.row,
        })
    elif isinstance(failure, CopyConstraintViolation):
        data.update({
            "cells": [str(failure.cell_a), str(failure.cell_b)],
            "values": [fr_short(failure.value_a), fr_short(failure.value_b)],
        })
    elif isinstance(failure, PublicInputMismatch):
        data.update({
            "column": serialize_column(failure.column),
            "row": failure.row,
            "expected": fr_short(failure.expected),
            "actual": fr_short(failure.actual),
        })
    return data
