"""data_utils.py: Functions to reshape solver output into tables and write them."""

import os
from typing import Callable

import gurobipy as gp
import pandas as pd


def tupledict_to_dataframe(
    items: gp.tupledict,
    get_value: Callable,
) -> pd.DataFrame:
    """Arrange the values of a tupledict keyed by (entity, t) into a table
    indexed by t with one column per entity. A tupledict keyed by t alone gives
    a single `value` column.

    Args:
        items: Variables or constraints.
        get_value: Returns the value of one item.

    Returns:
        pd.DataFrame: The values indexed by t.
    """
    records = []
    for key, item in items.items():
        if isinstance(key, tuple):
            entity, t = key[0], key[-1]
        else:
            entity, t = "value", key
        records.append({"t": t, "entity": entity, "value": get_value(item)})
    if not records:
        return pd.DataFrame(index=pd.Index([], name="t"))
    df = pd.DataFrame(records).pivot(index="t", columns="entity", values="value")
    df.columns.name = None
    return df.sort_index()


def write_df(
    df: pd.DataFrame,
    output_folder: str,
    output_name: str,
    index: bool = True,
) -> None:
    """Write a dataframe to the output folder.

    Args:
        df: The dataframe to write.
        output_folder: The folder. It is created if it does not exist.
        output_name: The name of the output file without suffix.
        index: Whether to write the index.

    Returns:
        None
    """
    # First check that the output directory exists. If not, create it.
    if not os.path.exists(output_folder):
        os.makedirs(output_folder)
    df.to_csv(os.path.join(output_folder, f"{output_name}.csv"), index=index)
