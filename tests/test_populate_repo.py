from __future__ import annotations

import httpx
import pytest

from rule_repo_manager.domain.exceptions import RemoteRequestError, TransportError
from rule_repo_manager.services.populate_repo import PopulateRepoUseCase

from conftest import FakeGitHub, body, fail, ok

RULE = "/repos/test-org/rule-123/contents/src/rule.ts"
TEST = "/repos/test-org/rule-123/contents/__tests__/unit/rule.test.ts"
RULE_CODE = "cnVsZUNvZGU="
TEST_CODE = "dGVzdENvZGU="


@pytest.mark.asyncio
async def test_populate_writes_rule_then_test(github: FakeGitHub, context) -> None:
    github.on("GET", RULE, ok({"sha": "rule-sha"}))
    github.on("PUT", RULE, ok())
    github.on("PUT", TEST, ok({}, status=201))

    result = await PopulateRepoUseCase(context).execute("test-org", "123", RULE_CODE, TEST_CODE)

    assert result.message == "Populated test-org/rule-123 on main"
    puts = [path for method, path in github.calls if method == "PUT"]
    assert puts == [RULE, TEST]

    rule_put = body(github.calls_to("PUT", RULE)[0])
    assert rule_put == {
        "message": "Update src/rule.ts",
        "content": RULE_CODE,
        "branch": "main",
        "sha": "rule-sha",
    }
    test_put = body(github.calls_to("PUT", TEST)[0])
    assert "sha" not in test_put
    assert test_put["content"] == TEST_CODE


@pytest.mark.asyncio
async def test_sha_lookup_uses_target_branch(github: FakeGitHub, context) -> None:
    github.on("PUT", RULE, ok())
    github.on("PUT", TEST, ok())

    await PopulateRepoUseCase(context).execute("test-org", "123", RULE_CODE, TEST_CODE)

    lookup = github.calls_to("GET", RULE)[0]
    assert lookup.url.params["ref"] == "main"


@pytest.mark.asyncio
async def test_rule_failure_skips_test_file(github: FakeGitHub, context) -> None:
    github.on("PUT", RULE, fail(422, "Invalid request"))
    github.on("PUT", TEST, ok())

    with pytest.raises(RemoteRequestError, match="^Rule update failed: Invalid request$"):
        await PopulateRepoUseCase(context).execute("test-org", "123", RULE_CODE, TEST_CODE)

    assert not github.calls_to("GET", TEST)
    assert not github.calls_to("PUT", TEST)


@pytest.mark.asyncio
async def test_test_failure_is_reported(github: FakeGitHub, context) -> None:
    github.on("PUT", RULE, ok())
    github.on("PUT", TEST, fail(409, "conflict"))

    with pytest.raises(RemoteRequestError, match="^Test update failed: conflict$"):
        await PopulateRepoUseCase(context).execute("test-org", "123", RULE_CODE, TEST_CODE)


@pytest.mark.asyncio
async def test_network_error_propagates(github: FakeGitHub, context) -> None:
    github.on("GET", RULE, ok({"sha": "rule-sha"}))
    github.on("PUT", RULE, httpx.ReadError("Network error"))

    with pytest.raises(TransportError, match="Network error"):
        await PopulateRepoUseCase(context).execute("test-org", "123", RULE_CODE, TEST_CODE)
