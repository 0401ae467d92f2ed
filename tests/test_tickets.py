import asyncio
import random
from collections import Counter

import pytest

from helpdesk_api.app.core.exceptions import InvalidInputError, NotFoundError
from helpdesk_api.app.schemas.ticket import TicketCreate, TicketUpdate
from helpdesk_api.app.schemas.user import UserRead
from helpdesk_api.app.services.ticket_service import TicketService, pick_agent
from helpdesk_api.app.services.user_service import UserService


def run(coro):
    return asyncio.run(coro)


def agent(agent_id):
    return UserRead(
        id=agent_id,
        fullname=f"Agent {agent_id}",
        email=f"{agent_id}@example.com",
        role="agent",
        createdAt="2024-01-01T00:00:00.000Z",
        updatedAt="2024-01-01T00:00:00.000Z",
    )


class LastChoice:
    def choice(self, seq):
        return seq[-1]


def test_pick_agent_without_agents():
    assert pick_agent([]) is None


def test_pick_agent_single_agent_always_chosen():
    only = agent("a1")
    assert all(pick_agent([only], random.Random(seed)) is only for seed in range(20))


def test_pick_agent_uses_given_rng():
    agents = [agent("a1"), agent("a2"), agent("a3")]
    assert pick_agent(agents, LastChoice()).id == "a3"


def test_pick_agent_is_roughly_uniform():
    agents = [agent("a1"), agent("a2"), agent("a3")]
    rng = random.Random(1234)
    counts = Counter(pick_agent(agents, rng).id for _ in range(3000))
    assert set(counts) == {"a1", "a2", "a3"}
    for value in counts.values():
        assert 850 < value < 1150


def test_create_ticket_without_agents_is_unassigned(make_ticket):
    ticket = make_ticket()
    assert ticket.assignedAgentId is None
    assert ticket.assignedAgentName == ""
    assert ticket.status == "open"
    assert ticket.priority == "high"


def test_create_ticket_assigns_an_agent(make_user, make_ticket):
    make_user(email="c@example.com", role="customer")
    first, _ = make_user(email="a1@example.com", fullname="Grace Hopper", role="agent")
    second, _ = make_user(email="a2@example.com", fullname="Alan Turing", role="agent")

    ticket = make_ticket(rng=LastChoice())

    assert ticket.assignedAgentId == second.id
    assert ticket.assignedAgentName == "Alan Turing"
    assert first.id != second.id


def test_agent_lookup_failure_leaves_ticket_unassigned(make_ticket, monkeypatch):
    async def broken():
        raise ValueError("malformed user row")

    monkeypatch.setattr(UserService, "list_agents", broken)

    ticket = make_ticket()
    assert ticket.assignedAgentId is None
    assert ticket.assignedAgentName == ""


def test_create_ticket_requires_all_fields():
    with pytest.raises(InvalidInputError, match="are required"):
        run(TicketService.create_ticket(TicketCreate(title="Only a title")))


def test_create_ticket_rejects_unknown_priority(make_ticket):
    with pytest.raises(InvalidInputError, match="Priority must be one of"):
        make_ticket(priority="whenever")


def test_priority_is_case_insensitive(make_ticket):
    assert make_ticket(priority="URGENT").priority == "urgent"


def test_list_tickets_filters_and_paginates(make_ticket):
    for index in range(3):
        make_ticket(user_id="u1", title=f"Ticket {index}")
    make_ticket(user_id="u2", priority="low")

    page = run(TicketService.list_tickets(user_id="u1", page=1, limit=2))
    assert len(page.tickets) == 2
    assert page.pagination.totalTickets == 3
    assert page.pagination.totalPages == 2
    assert page.pagination.hasNext is True
    assert page.pagination.hasPrev is False
    # newest first
    assert page.tickets[0].title == "Ticket 2"

    low = run(TicketService.list_tickets(priority="low"))
    assert [t.userId for t in low.tickets] == ["u2"]


def test_update_ticket_status_and_agent(make_ticket):
    ticket = make_ticket()
    updated = run(
        TicketService.update_ticket(
            ticket.id,
            TicketUpdate(status="inprogress", assignedAgentId="a9", assignedAgentName="Someone"),
        )
    )
    assert updated.status == "inprogress"
    assert updated.assignedAgentId == "a9"
    assert updated.title == ticket.title

    with pytest.raises(InvalidInputError, match="Status must be one of"):
        run(TicketService.update_ticket(ticket.id, TicketUpdate(status="pending")))


def test_update_and_delete_unknown_ticket():
    with pytest.raises(NotFoundError):
        run(TicketService.update_ticket("missing", TicketUpdate(title="x")))
    with pytest.raises(NotFoundError):
        run(TicketService.delete_ticket("missing"))


def test_ticket_endpoints(client):
    created = client.post(
        "/api/v1/tickets",
        json={
            "title": "Laptop",
            "description": "Won't boot",
            "priority": "medium",
            "userEmail": "Ada@Example.com",
            "userName": "Ada",
            "userId": "u1",
        },
    )
    assert created.status_code == 201
    assert created.json()["message"] == "Ticket created successfully"
    ticket = created.json()["ticket"]
    assert ticket["userEmail"] == "ada@example.com"
    assert "assignedAgentId" not in ticket

    listed = client.get("/api/v1/tickets", params={"userEmail": "ada@"})
    assert listed.json()["pagination"]["totalTickets"] == 1

    fetched = client.get(f"/api/v1/tickets/{ticket['id']}")
    assert fetched.json()["ticket"]["title"] == "Laptop"

    updated = client.put(f"/api/v1/tickets/{ticket['id']}", json={"status": "resolved"})
    assert updated.status_code == 200
    assert updated.json()["ticket"]["status"] == "resolved"

    deleted = client.delete(f"/api/v1/tickets/{ticket['id']}")
    assert deleted.json() == {"message": "Ticket deleted successfully"}
    assert client.get(f"/api/v1/tickets/{ticket['id']}").status_code == 404


def test_create_ticket_endpoint_missing_fields(client):
    response = client.post("/api/v1/tickets", json={"title": "x"})
    assert response.status_code == 400
    assert response.json()["message"].startswith("All fields")
