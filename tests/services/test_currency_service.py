import pytest
from pydantic import ValidationError

from commerce_kernel.config.flags import TAX_INCLUSIVE_PRICING, FeatureFlagRouter
from commerce_kernel.errors import ErrorType, KernelError
from commerce_kernel.services.currency import (
    CreateCurrencyInput,
    CurrencyService,
    UpdateCurrencyInput,
)


def currency_input(code, name=None):
    return CreateCurrencyInput(code=code, symbol="$", symbol_native="$", name=name or code.upper())


@pytest.fixture()
def flags():
    return FeatureFlagRouter()


@pytest.fixture()
async def service(coordinator, event_bus, flags):
    svc = CurrencyService(coordinator=coordinator, event_bus=event_bus, flags=flags)
    for code in ("usd", "eur", "dkk"):
        await svc.create(currency_input(code))
    return svc


async def test_retrieve_by_code_is_case_insensitive(service):
    currency = await service.retrieve_by_code("USD")

    assert currency.code == "usd"
    assert currency.includes_tax is False


async def test_retrieve_by_code_not_found(service):
    with pytest.raises(KernelError) as info:
        await service.retrieve_by_code("xxx")

    assert info.value.type is ErrorType.NOT_FOUND
    assert info.value.message == "Currency with code: xxx was not found"


async def test_list_and_count_paginates(service):
    rows, count = await service.list_and_count(skip=1, take=1)

    assert count == 3
    assert [c.code for c in rows] == ["eur"]


async def test_list_and_count_filters(service):
    rows, count = await service.list_and_count({"code": ["USD", "dkk"]})

    assert count == 2
    assert [c.code for c in rows] == ["dkk", "usd"]


@pytest.mark.parametrize("code", [5, [None], ["usd", 3]])
async def test_list_and_count_rejects_non_string_code(service, code):
    with pytest.raises(KernelError) as info:
        await service.list_and_count({"code": code})

    assert info.value.type is ErrorType.INVALID_DATA


async def test_list_and_count_rejects_unknown_field(service):
    with pytest.raises(KernelError) as info:
        await service.list_and_count({"rate": 1})

    assert info.value.type is ErrorType.INVALID_DATA


async def test_create_rejects_duplicate(service):
    with pytest.raises(KernelError) as info:
        await service.create(currency_input("USD"))

    assert info.value.type is ErrorType.DUPLICATE_ERROR


def test_create_input_validates_code_length():
    with pytest.raises(ValidationError):
        currency_input("dollar")


async def test_create_emits_after_commit(service, received):
    await service.create(currency_input("gbp"))

    assert received == [("currency.created", {"code": "gbp"})]


async def test_update_ignores_includes_tax_when_flag_off(service, received):
    updated = await service.update("usd", UpdateCurrencyInput(includes_tax=True))

    assert updated.includes_tax is False
    assert (await service.retrieve_by_code("usd")).includes_tax is False
    assert received == [("currency.updated", {"code": "usd"})]


async def test_update_sets_includes_tax_when_flag_on(service, flags):
    flags.set_flag(TAX_INCLUSIVE_PRICING)

    await service.update("usd", UpdateCurrencyInput(includes_tax=True))

    assert (await service.retrieve_by_code("usd")).includes_tax is True


async def test_update_unknown_currency(service, received):
    with pytest.raises(KernelError) as info:
        await service.update("xxx", UpdateCurrencyInput(includes_tax=True))

    assert info.value.type is ErrorType.NOT_FOUND
    assert received == []


async def test_update_joins_caller_transaction_and_rolls_back(service, coordinator, flags, received):
    flags.set_flag(TAX_INCLUSIVE_PRICING)

    async def work(ctx):
        await service.update("usd", UpdateCurrencyInput(includes_tax=True), transaction_manager=ctx.transaction_manager)
        await service.create(currency_input("gbp"), transaction_manager=ctx.transaction_manager)
        # the joined update has not committed or emitted yet
        assert received == []
        raise RuntimeError("checkout failed")

    with pytest.raises(RuntimeError):
        await coordinator.run(work)

    assert (await service.retrieve_by_code("usd")).includes_tax is False
    with pytest.raises(KernelError):
        await service.retrieve_by_code("gbp")
    assert received == []


async def test_update_joined_commit_emits_once(service, coordinator, flags, received, tx_log):
    flags.set_flag(TAX_INCLUSIVE_PRICING)
    tx_log.clear()

    async def work(ctx):
        await service.update("usd", UpdateCurrencyInput(includes_tax=True), transaction_manager=ctx.transaction_manager)
        await service.update("eur", UpdateCurrencyInput(includes_tax=True), transaction_manager=ctx.transaction_manager)

    await coordinator.run(work)

    assert tx_log.snapshot() == ["begin", "commit"]
    assert received == [
        ("currency.updated", {"code": "usd"}),
        ("currency.updated", {"code": "eur"}),
    ]
