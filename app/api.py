"""HTTP route definitions for the service."""

from __future__ import annotations

from typing import Dict, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status

from app.schemas import (
    ChannelSelection,
    CurrentSelection,
    EventsResponse,
    HistoricalDataOut,
    RefreshAccepted,
    SensorSelection,
    TimeUpdate,
)
from models.entities import Sensor, Timerange
from services.aggregator import Aggregator
from services.data_view import DataView
from services.file_view import FileDataView, build_default_view
from services.journal import EventJournal, build_default_journal
from services.memory_view import InMemoryDataView

router = APIRouter()

_aggregator = Aggregator()


def get_view() -> DataView:
    return build_default_view()


def get_journal() -> EventJournal:
    return build_default_journal()


def _not_implemented() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_501_NOT_IMPLEMENTED,
        detail="The configured data view does not implement this operation.",
    )


def _mutable(view: DataView) -> InMemoryDataView:
    if not isinstance(view, InMemoryDataView):
        raise _not_implemented()
    return view


def _selection(view: DataView) -> CurrentSelection:
    return CurrentSelection(
        current_time=view.get_current_time(),
        sensor_id=view.get_current_sensor_id(),
        channel_id=view.get_current_channel_id(),
    )


@router.get("/timerange", response_model=Timerange, summary="Queryable time span.")
async def get_timerange(view: DataView = Depends(get_view)) -> Timerange:
    try:
        return view.get_timerange()
    except NotImplementedError as exc:
        raise _not_implemented() from exc


@router.get(
    "/sensors",
    response_model=Dict[str, Sensor],
    summary="All sensors currently in scope, indexed by sensor ID.",
)
async def list_sensors(view: DataView = Depends(get_view)) -> Dict[str, Sensor]:
    try:
        return view.get_sensors()
    except NotImplementedError as exc:
        raise _not_implemented() from exc


@router.get("/sensors/{sensor_id}", response_model=Sensor, summary="A single sensor.")
async def get_sensor(sensor_id: str, view: DataView = Depends(get_view)) -> Sensor:
    try:
        sensors = view.get_sensors()
    except NotImplementedError as exc:
        raise _not_implemented() from exc
    sensor = sensors.get(sensor_id)
    if sensor is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Sensor {sensor_id!r} not found.",
        )
    return sensor


@router.get(
    "/historical-data",
    response_model=Dict[str, HistoricalDataOut],
    summary="Historical samples for the current time range, per sensor.",
)
async def list_historical_data(
    view: DataView = Depends(get_view),
) -> Dict[str, HistoricalDataOut]:
    try:
        data = view.get_historical_data()
    except NotImplementedError as exc:
        raise _not_implemented() from exc
    return {
        sensor_id: HistoricalDataOut.from_entity(item, _aggregator)
        for sensor_id, item in data.items()
    }


@router.get(
    "/historical-data/{sensor_id}",
    response_model=HistoricalDataOut,
    summary="Historical samples of one sensor.",
)
async def get_historical_data(
    sensor_id: str,
    view: DataView = Depends(get_view),
) -> HistoricalDataOut:
    try:
        data = view.get_historical_data()
    except NotImplementedError as exc:
        raise _not_implemented() from exc
    item = data.get(sensor_id)
    if item is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No historical data for sensor {sensor_id!r}.",
        )
    return HistoricalDataOut.from_entity(item, _aggregator)


@router.get("/current", response_model=CurrentSelection, summary="Current selection.")
async def get_current(view: DataView = Depends(get_view)) -> CurrentSelection:
    try:
        return _selection(view)
    except NotImplementedError as exc:
        raise _not_implemented() from exc


@router.put("/current/time", response_model=CurrentSelection, summary="Select the current time.")
async def put_current_time(
    body: TimeUpdate,
    view: DataView = Depends(get_view),
) -> CurrentSelection:
    mutable = _mutable(view)
    try:
        mutable.set_current_time(body.current_time)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return _selection(mutable)


@router.put("/current/sensor", response_model=CurrentSelection, summary="Select the current sensor.")
async def put_current_sensor(
    body: SensorSelection,
    view: DataView = Depends(get_view),
) -> CurrentSelection:
    mutable = _mutable(view)
    try:
        mutable.set_current_sensor(body.sensor_id)
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.args[0]) from exc
    return _selection(mutable)


@router.put("/current/channel", response_model=CurrentSelection, summary="Select the current channel.")
async def put_current_channel(
    body: ChannelSelection,
    view: DataView = Depends(get_view),
) -> CurrentSelection:
    mutable = _mutable(view)
    try:
        mutable.set_current_channel(body.channel_id)
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.args[0]) from exc
    return _selection(mutable)


async def _refresh(view: FileDataView) -> None:
    view.refresh()


@router.post(
    "/refresh",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=RefreshAccepted,
    summary="Reload the data view from its source in the background.",
)
async def refresh(
    background_tasks: BackgroundTasks,
    view: DataView = Depends(get_view),
) -> RefreshAccepted:
    if not isinstance(view, FileDataView):
        raise _not_implemented()
    background_tasks.add_task(_refresh, view)
    return RefreshAccepted()


@router.get("/events", response_model=EventsResponse, summary="Recorded data view events.")
async def list_events(
    after: Optional[int] = Query(None, ge=0, description="Only entries newer than this sequence."),
    journal: EventJournal = Depends(get_journal),
) -> EventsResponse:
    return EventsResponse(
        latest_sequence=journal.latest_sequence(),
        entries=journal.entries(after=after),
    )


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
