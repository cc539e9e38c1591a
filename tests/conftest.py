"""Shared fixtures: sample TypeScript projects written into tmp_path."""

import textwrap
from pathlib import Path

import pytest

SCHEMA_TS = """\
interface Failure<E> {
  _tag: "Failure"
  error: E
}
interface Success<V> {
  _tag: "Success"
  value: V
}

/** Helps creating success results */
export const success = <T>(value: T): Success<T> => ({ _tag: "Success", value })

/**
 * @summary generates an error
 */
export const failure = <E>(error: E): Failure<E> => ({ _tag: "Failure", error })

export interface Schema<T> {
  name: string
  parse: (input: unknown) => Success<T> | Failure<string>
}

/**
 * A simple schema for strings.
 * @example
 * ```ts
 * assert.equal(string.parse('hello'), success('hello'))
 * ```
 * @example Failure
 * ```ts
 * assert.deepEqual(
 *   string.parse(42),
 *   failure("not a string"),
 * )
 * ```
 */
export const string: Schema<string> = {
  name: "string",
  parse: (input) => {
    return typeof input === "string" ? success(input) : failure("not a string")
  },
}
"""

INTERFACE_TS = """\
export interface SchemaError1 {
  schemaName: string
  /**
   * A detailed explanation of the encountered error
   *
   * @summary The reason why the parsing failed.
   */
  reasons: Array<{
    name: string;
    description: string;
    /** Error CODE */
    code: number
  }>
  /** One can document methods too */
  superTest(): number
  undocumentedMethod(): void
}

export type SchemaError2 = SchemaError1
"""

FN_TS = """\
export function myFn() {}

/** Some doc on the test.maxLength */
myFn.maxLength = 3
"""

PROXY_TS = """\
interface A {
  /** Important stuff to know about. */
  propOfA: string
}
interface B {
  /** B is the way to go */
  propOfB: number
}

/** Doc it damn it ! */
export type Proxy<T> = T extends string ? A : T extends number ? B : never
"""

BARREL_TS = """\
export { success, failure, string } from "./schema"
export * from "./interface"
export * as fns from "./fn"
"""


def write_project(root: Path, files: dict[str, str]) -> Path:
    """Write source files under root and return root."""
    for name, content in files.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(content), encoding="utf-8")
    return root


@pytest.fixture
def samples(tmp_path: Path) -> Path:
    """A small TypeScript project with a barrel file."""
    return write_project(
        tmp_path / "samples",
        {
            "schema.ts": SCHEMA_TS,
            "interface.ts": INTERFACE_TS,
            "fn.ts": FN_TS,
            "proxy-type.ts": PROXY_TS,
            "barrel.ts": BARREL_TS,
        },
    )
