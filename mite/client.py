"""
Client for the mite time tracking API.

One method per API operation. Arguments are validated and converted to
the wire format locally, so bad input never reaches the network. Lookups
by id raise the resource-specific :class:`~mite.exceptions.NotFoundError`
subclass when mite answers with a 404.

.. code-block:: python

    from mite import MiteClient, RestClient

    client = MiteClient(RestClient("https://demo.mite.yo.lk", "api-key"))
    entries = client.list_entries({"at": "today"}, ["project"])
"""
from __future__ import annotations
from typing import Any, Dict, Iterable, List, Mapping, Optional, Type

from mite.exceptions import (
    CustomerNotFoundError,
    EntryNotFoundError,
    InvalidArgumentError,
    NotFoundError,
    ProjectNotFoundError,
    ServiceNotFoundError,
    UserNotFoundError,
)
from mite.normalize import (
    TIME_ENTRY_FILTER_RULES,
    Rule,
    bool_field,
    collection_field,
    date_field,
    enum_field,
    int_field,
    is_empty,
    name_field,
    normalize,
    passthrough,
    to_int,
)
from mite.rest import HeadersInput, RestClient
from mite.types import (
    ACTIVE_HOURLY_RATES,
    BUDGET_TYPES,
    TIME_ENTRY_GROUPING,
    Outcome,
)

TIME_ENTRY_FIELDS: Dict[str, Rule] = {
    "date_at": date_field,
    "minutes": passthrough,
    "note": passthrough,
    "user_id": passthrough,
    "project_id": passthrough,
    "service_id": passthrough,
    "locked": bool_field("Locked", lenient=True),
}

CUSTOMER_FIELDS: Dict[str, Rule] = {
    "name": name_field("Name: expected string with len >= 0"),
    "note": passthrough,
    "archived": bool_field("Archived", lenient=True),
    "hourly_rate": int_field("Hourly Rate"),
    "hourly_rates_per_service": collection_field("Hourly Rates Per Service"),
    "active_hourly_rate": enum_field("Active hourly rate", ACTIVE_HOURLY_RATES),
}

PROJECT_FIELDS: Dict[str, Rule] = {
    "name": name_field("Name: You must provide a name for the project"),
    "note": passthrough,
    "budget": int_field("Budget"),
    "budget_type": enum_field("Budget type", BUDGET_TYPES),
    "archived": bool_field("Archived"),
    "customer_id": int_field("Customer"),
    "hourly_rate": int_field("Hourly Rate"),
    "hourly_rates_per_service": collection_field("Hourly Rates Per Service"),
    "active_hourly_rate": enum_field("Active hourly rate", ACTIVE_HOURLY_RATES),
    "update_hourly_rate_on_time_entries": bool_field("Update hourly rate on time entries"),
}

SERVICE_FIELDS: Dict[str, Rule] = {
    "name": name_field("Name: You must provide a name for the service"),
    "note": passthrough,
    "hourly_rate": int_field("Hourly Rate"),
    "billable": bool_field("Billable"),
    "archived": bool_field("Archived"),
    "update_hourly_rate_on_time_entries": bool_field("Update hourly rate on time entries"),
}


def _require_id(id: Any) -> int:
    parsed = to_int(id)
    if parsed is None:
        raise InvalidArgumentError(f"ID must be a positive integer got: {id}")
    return parsed


def _require_search_term(*terms: Any) -> None:
    if not any(term is not None and len(str(term)) >= 2 for term in terms):
        raise InvalidArgumentError("The search term must be at least 2 characters long")


def _merge_results(active: Any, archived: Any) -> List[Any]:
    # no dedup: a record can only be active or archived
    return [
        record
        for result in (active, archived)
        if isinstance(result, list)
        for record in result
    ]


class MiteClient:
    """Typed operations on a mite account.

    Parameters
    ----------
    rest : RestClient, optional
        The wire adapter to send requests through. When omitted one is
        built from :data:`mite.config.settings`.
    """

    def __init__(self, rest: Optional[RestClient] = None) -> None:
        self.rest = rest or RestClient()

    @classmethod
    def from_settings(cls, **overrides: Any) -> "MiteClient":
        """Build a client from the environment, with keyword overrides for RestClient."""
        return cls(RestClient(**overrides))

    # ------------------------------------------------------------------
    # Request helpers
    # ------------------------------------------------------------------
    def call_api(
        self,
        method: str,
        path: str,
        parameters: Optional[Dict[str, Any]] = None,
        *,
        headers: HeadersInput = None,
        expected: Optional[str] = None,
    ) -> Any:
        """Send a request and return the decoded data, raising on failure."""
        return self.rest.call(
            method, path, parameters, headers=headers, expected=expected
        ).unwrap()

    def _by_id(
        self,
        method: str,
        path: str,
        id: int,
        not_found: Type[NotFoundError],
        parameters: Optional[Dict[str, Any]] = None,
    ) -> Any:
        outcome: Outcome = self.rest.call(method, path, parameters)
        if outcome.ok:
            return outcome.data
        if outcome.code == 404:
            raise not_found(f"Cannot find entry: {id}", 404) from outcome.error
        return outcome.unwrap()

    def _get(self, resource: str, wrapper: str, id: Any, not_found: Type[NotFoundError]) -> Any:
        id = _require_id(id)
        data = self._by_id("GET", f"/{resource}/{id}.json", id, not_found)
        if not isinstance(data, dict) or wrapper not in data:
            raise not_found(f"Cannot find entry: {id}", 404)
        return data[wrapper]

    def _list(
        self,
        path: str,
        params: Dict[str, Any],
        limit: Optional[int],
        page: Optional[int],
    ) -> Any:
        params.update(self.prepare_limit(limit, page))
        return self.call_api("GET", path, params)

    def prepare_limit(self, limit: Optional[int] = None, page: Optional[int] = None) -> Dict[str, int]:
        """Pagination parameters; ``page`` needs ``limit``."""
        params: Dict[str, int] = {}
        if page is not None and limit is None:
            raise InvalidArgumentError("Page is only working with limit")

        if limit is not None:
            parsed = to_int(limit, minimum=1)
            if parsed is None:
                raise InvalidArgumentError("limit must be greater than 0")
            params["limit"] = parsed

        if page is not None:
            parsed = to_int(page, minimum=1)
            if parsed is None:
                raise InvalidArgumentError("page must be greater than 0")
            params["page"] = parsed

        return params

    # ------------------------------------------------------------------
    # Time entries
    # ------------------------------------------------------------------
    def prepare_time_entry_filters(
        self, filter: Optional[Mapping[str, Any]] = None, strict: bool = False
    ) -> Dict[str, Any]:
        """Normalize time entry filters, dropping bad entries unless strict."""
        return normalize(
            filter or {},
            TIME_ENTRY_FILTER_RULES,
            label="Filter",
            report_unknown=True,
        ).resolve(strict)

    def prepare_time_entry_grouping(
        self, group: Optional[Iterable[str]] = None, strict: bool = False
    ) -> List[str]:
        """Keep the supported grouping keys, in order. A single key may be passed as a string."""
        if isinstance(group, str):
            group = [group]
        use = []
        for value in group or []:
            if value not in TIME_ENTRY_GROUPING:
                if strict:
                    raise InvalidArgumentError(f"GroupBy: {value}: is not supported")
                continue
            use.append(value)
        return use

    def prepare_entry_data(self, data: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        return {"time_entry": normalize(data or {}, TIME_ENTRY_FIELDS, skip_none=True).resolve(True)}

    def list_entries(
        self,
        filter: Optional[Mapping[str, Any]] = None,
        group: Optional[Iterable[str]] = None,
        limit: Optional[int] = None,
        page: Optional[int] = None,
        strict: bool = False,
    ) -> Any:
        """
        List time entries, optionally filtered and grouped.

        With ``strict`` every unsupported or invalid filter or grouping
        entry raises :class:`InvalidArgumentError` instead of being dropped.
        """
        params = self.prepare_time_entry_filters(filter, strict)
        grouping = self.prepare_time_entry_grouping(group, strict)
        if grouping:
            params["group_by"] = ",".join(grouping)
        return self._list("/time_entries.json", params, limit, page)

    def get_entry(self, id: Any) -> Dict[str, Any]:
        return self._get("time_entries", "time_entry", id, EntryNotFoundError)

    def create_entry(self, data: Optional[Mapping[str, Any]] = None) -> Any:
        """Create a time entry. Every field is optional."""
        return self.call_api("POST", "/time_entries.json", self.prepare_entry_data(data))

    def update_entry(
        self, id: Any, data: Optional[Mapping[str, Any]] = None, force: bool = False
    ) -> Any:
        """Update a time entry; ``force`` edits locked entries."""
        id = _require_id(id)
        params = self.prepare_entry_data(data)
        if force is True:
            params["time_entry"]["force"] = "true"
        return self._by_id("PUT", f"/time_entries/{id}.json", id, EntryNotFoundError, params)

    def delete_entry(self, id: Any) -> Any:
        id = _require_id(id)
        return self._by_id("DELETE", f"/time_entries/{id}.json", id, EntryNotFoundError)

    # ------------------------------------------------------------------
    # Customers
    # ------------------------------------------------------------------
    def prepare_customer_data(self, data: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        return {"customer": normalize(data or {}, CUSTOMER_FIELDS, skip_none=True).resolve(True)}

    def list_customers(
        self, name: Optional[str] = None, limit: Optional[int] = None, page: Optional[int] = None
    ) -> Any:
        params = {} if name is None else {"name": name}
        return self._list("/customers.json", params, limit, page)

    def list_archived_customers(
        self, name: Optional[str] = None, limit: Optional[int] = None, page: Optional[int] = None
    ) -> Any:
        params = {} if name is None else {"name": name}
        return self._list("/customers/archived.json", params, limit, page)

    def search_customers(self, name: str) -> List[Any]:
        """Active and archived customers matching ``name``, without pagination."""
        _require_search_term(name)
        return _merge_results(self.list_customers(name), self.list_archived_customers(name))

    def get_customer(self, id: Any) -> Dict[str, Any]:
        return self._get("customers", "customer", id, CustomerNotFoundError)

    def create_customer(self, name: str, options: Optional[Mapping[str, Any]] = None) -> Any:
        """
        Create a customer. ``options`` may hold note, archived, hourly_rate
        (cents), hourly_rates_per_service and active_hourly_rate.
        """
        if is_empty(name):
            raise InvalidArgumentError(
                f"Name: you must provide a valid name for the customer got: {name}"
            )
        data = dict(options or {})
        data["name"] = name
        return self.call_api("POST", "/customers.json", self.prepare_customer_data(data))

    def update_customer(self, id: Any, options: Optional[Mapping[str, Any]] = None) -> Any:
        id = _require_id(id)
        params = self.prepare_customer_data(options)
        return self._by_id("PUT", f"/customers/{id}.json", id, CustomerNotFoundError, params)

    def delete_customer(self, id: Any) -> Any:
        """Delete a customer. mite refuses when projects are left."""
        id = _require_id(id)
        return self._by_id("DELETE", f"/customers/{id}.json", id, CustomerNotFoundError)

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------
    def prepare_project_data(self, data: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        return {"project": normalize(data or {}, PROJECT_FIELDS, skip_none=True).resolve(True)}

    def _project_params(self, name: Optional[str], customer_id: Optional[int]) -> Dict[str, Any]:
        params: Dict[str, Any] = {}
        if name is not None:
            params["name"] = name
        if customer_id is not None:
            params["customer_id"] = customer_id
        return params

    def list_projects(
        self,
        name: Optional[str] = None,
        limit: Optional[int] = None,
        page: Optional[int] = None,
        customer_id: Optional[int] = None,
    ) -> Any:
        params = self._project_params(name, customer_id)
        return self._list("/projects.json", params, limit, page)

    def list_archived_projects(
        self,
        name: Optional[str] = None,
        limit: Optional[int] = None,
        page: Optional[int] = None,
        customer_id: Optional[int] = None,
    ) -> Any:
        params = self._project_params(name, customer_id)
        return self._list("/projects/archived.json", params, limit, page)

    def search_projects(self, name: str) -> List[Any]:
        _require_search_term(name)
        return _merge_results(self.list_projects(name), self.list_archived_projects(name))

    def get_project(self, id: Any) -> Dict[str, Any]:
        return self._get("projects", "project", id, ProjectNotFoundError)

    def create_project(self, name: str, options: Optional[Mapping[str, Any]] = None) -> Any:
        if name == "":
            raise InvalidArgumentError("You must provide a name for the project")
        data = dict(options or {})
        data["name"] = name
        return self.call_api("POST", "/projects.json", self.prepare_project_data(data))

    def update_project(self, id: Any, options: Optional[Mapping[str, Any]] = None) -> Any:
        """Update a project. None values are not sent; use the string "nil" to clear a field."""
        id = _require_id(id)
        params = self.prepare_project_data(options)
        return self._by_id("PUT", f"/projects/{id}.json", id, ProjectNotFoundError, params)

    def delete_project(self, id: Any) -> Any:
        id = _require_id(id)
        return self._by_id("DELETE", f"/projects/{id}.json", id, ProjectNotFoundError)

    # ------------------------------------------------------------------
    # Services
    # ------------------------------------------------------------------
    def prepare_service_data(self, data: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        return {"service": normalize(data or {}, SERVICE_FIELDS, skip_none=True).resolve(True)}

    def list_services(
        self, name: Optional[str] = None, limit: Optional[int] = None, page: Optional[int] = None
    ) -> Any:
        params = {} if name is None else {"name": name}
        return self._list("/services.json", params, limit, page)

    def list_archived_services(
        self, name: Optional[str] = None, limit: Optional[int] = None, page: Optional[int] = None
    ) -> Any:
        params = {} if name is None else {"name": name}
        return self._list("/services/archived.json", params, limit, page)

    def search_services(self, name: str) -> List[Any]:
        _require_search_term(name)
        return _merge_results(self.list_services(name), self.list_archived_services(name))

    def get_service(self, id: Any) -> Dict[str, Any]:
        return self._get("services", "service", id, ServiceNotFoundError)

    def create_service(self, name: Any, options: Optional[Mapping[str, Any]] = None) -> Any:
        data = dict(options or {})
        data["name"] = "" if name is None else str(name)
        return self.call_api("POST", "/services.json", self.prepare_service_data(data))

    def update_service(self, id: Any, options: Optional[Mapping[str, Any]] = None) -> Any:
        id = _require_id(id)
        params = self.prepare_service_data(options)
        return self._by_id("PUT", f"/services/{id}.json", id, ServiceNotFoundError, params)

    def delete_service(self, id: Any) -> Any:
        id = _require_id(id)
        return self._by_id("DELETE", f"/services/{id}.json", id, ServiceNotFoundError)

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------
    def _user_params(self, name: Optional[str], email: Optional[str]) -> Dict[str, Any]:
        params: Dict[str, Any] = {}
        if name:
            params["name"] = name
        if email:
            params["email"] = email
        return params

    def list_users(
        self,
        name: Optional[str] = None,
        email: Optional[str] = None,
        limit: Optional[int] = None,
        page: Optional[int] = None,
    ) -> Any:
        return self._list("/users.json", self._user_params(name, email), limit, page)

    def list_archived_users(
        self,
        name: Optional[str] = None,
        email: Optional[str] = None,
        limit: Optional[int] = None,
        page: Optional[int] = None,
    ) -> Any:
        return self._list("/users/archived.json", self._user_params(name, email), limit, page)

    def search_users(self, name: Optional[str] = None, email: Optional[str] = None) -> List[Any]:
        """Active and archived users matching ``name`` and/or ``email``."""
        _require_search_term(name, email)
        return _merge_results(
            self.list_users(name, email), self.list_archived_users(name, email)
        )

    def get_user(self, id: Any) -> Dict[str, Any]:
        return self._get("users", "user", id, UserNotFoundError)

    def get_account(self) -> Any:
        """Account of the authenticated user."""
        return self.call_api("GET", "/account.json")

    def get_myself(self) -> Any:
        """User record of the authenticated user."""
        return self.call_api("GET", "/myself.json")
