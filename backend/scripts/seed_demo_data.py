
import sys
import os
from datetime import date, datetime, timedelta
import random

# Add parent directory to path to import gearguard modules
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


from gearguard.config import settings
from gearguard.database import create_db_engine, create_session_factory, init_db
from gearguard.models import (
    Department, Equipment, EquipmentCategory, EquipmentStatus, MaintenanceRequest,
    MaintenanceTeam, RequestPriority, RequestStage, RequestType, TeamMember, User,
    UserRole, WorkCenter
)
from gearguard.security import hash_password
from gearguard.services import stage_workflow
from gearguard.services.request_service import format_request_number

DEMO_PASSWORD = "Password@123"

CATEGORIES = ["Computers", "Machinery", "Vehicles", "HVAC", "Electrical"]
DEPARTMENTS = ["Production", "IT", "Logistics", "Facilities"]

USERS = [
    ("admin@gearguard.io", "Alice Admin", UserRole.ADMIN),
    ("manager@gearguard.io", "Marc Manager", UserRole.MANAGER),
    ("tech1@gearguard.io", "Tariq Technician", UserRole.TECHNICIAN),
    ("tech2@gearguard.io", "Tina Technician", UserRole.TECHNICIAN),
    ("operator@gearguard.io", "Omar Operator", UserRole.OPERATOR),
]

EQUIPMENT = [
    ("CNC Milling Machine", "EQ-CNC-001", "Machinery", "Building A - Line 1"),
    ("Hydraulic Press", "EQ-HYD-002", "Machinery", "Building A - Line 2"),
    ("Forklift Toyota 8FG", "EQ-FRK-003", "Vehicles", "Warehouse"),
    ("Rooftop AC Unit", "EQ-HVAC-004", "HVAC", "Building B - Roof"),
    ("Main Switchboard", "EQ-ELC-005", "Electrical", "Building A - Basement"),
    ("Design Workstation", "EQ-PC-006", "Computers", "Building C - Office 12"),
]


def seed_data():
    engine = create_db_engine(settings)
    init_db(engine)
    db = create_session_factory(engine)()
    try:
        print("Seeding GearGuard demo data...")

        if db.query(User).count() > 0:
            print("Database already contains users, skipping seed.")
            return

        # 1. Reference data
        categories = {name: EquipmentCategory(name=name) for name in CATEGORIES}
        departments = {name: Department(name=name) for name in DEPARTMENTS}
        db.add_all(list(categories.values()) + list(departments.values()))

        # 2. Users
        password_hash = hash_password(DEMO_PASSWORD, settings.BCRYPT_ROUNDS)
        users = {
            email: User(email=email, name=name, role=role, password_hash=password_hash)
            for email, name, role in USERS
        }
        db.add_all(users.values())
        db.flush()

        # 3. Teams
        mechanics = MaintenanceTeam(
            name="Mechanics",
            description="Machinery and vehicle repairs",
            team_leader_id=users["manager@gearguard.io"].id
        )
        it_support = MaintenanceTeam(name="IT Support", description="Computers and peripherals")
        db.add_all([mechanics, it_support])
        db.flush()

        db.add_all([
            TeamMember(team_id=mechanics.id, user_id=users["manager@gearguard.io"].id, role="Lead"),
            TeamMember(team_id=mechanics.id, user_id=users["tech1@gearguard.io"].id, role="Mechanic"),
            TeamMember(team_id=it_support.id, user_id=users["tech2@gearguard.io"].id, role="Technician"),
        ])

        # 4. Equipment
        equipment = []
        for name, code, category, location in EQUIPMENT:
            is_it = category == "Computers"
            eq = Equipment(
                name=name,
                equipment_code=code,
                category_id=categories[category].id,
                location=location,
                status=EquipmentStatus.OPERATIONAL,
                purchase_date=date.today() - timedelta(days=random.randint(90, 1200)),
                assigned_team_id=(it_support if is_it else mechanics).id,
                assigned_technician_id=users["tech2@gearguard.io" if is_it else "tech1@gearguard.io"].id,
                department_id=departments["IT" if is_it else "Production"].id,
                manufacturer="Demo Corp",
            )
            db.add(eq)
            equipment.append(eq)
            print(f"Created equipment: {eq.name} ({eq.equipment_code})")
        db.flush()

        # 5. Work centers
        db.add_all([
            WorkCenter(name="Assembly Line 1", code="WC-A1", category="Production",
                       location="Building A", capacity=10, department_id=departments["Production"].id,
                       assigned_team_id=mechanics.id),
            WorkCenter(name="Central Warehouse", code="WC-WH", category="Logistics",
                       location="Warehouse", capacity=5, department_id=departments["Logistics"].id),
        ])

        # 6. Maintenance requests spread over the Kanban stages
        requester = users["operator@gearguard.io"]
        count = 0
        for i, eq in enumerate(equipment):
            created = datetime.now() - timedelta(days=random.randint(1, 20))
            request = MaintenanceRequest(
                subject=f"Inspection of {eq.name}",
                request_type=RequestType.PREVENTIVE if i % 2 else RequestType.CORRECTIVE,
                equipment_id=eq.id,
                equipment_category_id=eq.category_id,
                maintenance_team_id=eq.assigned_team_id,
                assigned_technician_id=eq.assigned_technician_id,
                requested_by_id=requester.id,
                stage=RequestStage.NEW,
                priority=random.choice(list(RequestPriority)),
                scheduled_date=date.today() + timedelta(days=random.randint(-5, 15)),
                scheduled_time=f"{random.randint(8, 16):02d}:00",
                deadline=date.today() + timedelta(days=random.randint(-3, 20)),
                created_at=created,
                updated_at=created,
            )
            db.add(request)
            db.flush()
            request.request_number = format_request_number(created.year, request.id)

            # Walk some requests through the workflow
            if i % 3 >= 1:
                stage_workflow.apply_transition(request, RequestStage.IN_PROGRESS, changed_by_id=eq.assigned_technician_id)
            if i % 3 == 2:
                stage_workflow.apply_transition(request, RequestStage.REPAIRED, changed_by_id=eq.assigned_technician_id)
            count += 1

        db.commit()

        print(f"Successfully added {count} maintenance requests.")
        print(f"Log in with any seeded account (e.g. admin@gearguard.io) and password '{DEMO_PASSWORD}'.")

    except Exception as e:
        print(f"Error seeding data: {e}")
        db.rollback()
        raise
    finally:
        db.close()
        engine.dispose()


if __name__ == "__main__":
    seed_data()
