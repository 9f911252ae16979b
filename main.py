from typing import Optional

from fastapi import Depends, FastAPI
from faker import Faker
from pydantic import BaseModel
from sqlalchemy import Column, Integer, String
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from datatables_sql import DataTables, DataTablesRequest, DataTablesResponse, configure_logging
from datatables_sql.config import get_settings
from datatables_sql.dependencies import datatables_request

settings = get_settings()
configure_logging(settings.log_level, serialize=settings.log_serialize)

# ----------------------
# Database setup
# ----------------------
engine = create_async_engine(settings.database_url, echo=settings.echo, future=True)
async_session = sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

Base = declarative_base()


# ----------------------
# Models
# ----------------------
class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    company_name = Column(String)
    address = Column(String)
    city = Column(String)
    county = Column(String)
    state = Column(String)
    zip = Column(String)
    phone1 = Column(String)
    phone2 = Column(String)
    email = Column(String)
    web = Column(String)


class CustomerSchema(BaseModel):
    id: int
    first_name: str
    last_name: str
    company_name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    county: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    phone1: Optional[str] = None
    phone2: Optional[str] = None
    email: Optional[str] = None
    web: Optional[str] = None


# must not contain ORDER BY, OFFSET or TOP
CUSTOMER_QUERY = "SELECT * FROM customers"

CUSTOMER_COLUMNS = [column.name for column in Customer.__table__.columns]


# ----------------------
# FastAPI app
# ----------------------
app = FastAPI()
faker = Faker()


# ----------------------
# Create tables on startup
# ----------------------
@app.on_event("startup")
async def on_startup():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@app.on_event("shutdown")
async def on_shutdown():
    await engine.dispose()


# ----------------------
# Insert 1000 random customers
# ----------------------
@app.get("/insert_customers")
async def insert_customers():
    async with async_session() as session:
        customers = [
            Customer(
                first_name=faker.first_name(),
                last_name=faker.last_name(),
                company_name=faker.company(),
                address=faker.street_address(),
                city=faker.city(),
                county=faker.city_suffix(),
                state=faker.state_abbr(),
                zip=faker.zipcode(),
                phone1=faker.phone_number(),
                phone2=faker.phone_number(),
                email=faker.email(),
                web=faker.url(),
            )
            for _ in range(1000)
        ]
        session.add_all(customers)
        await session.commit()
    return {"message": "1000 random customers inserted successfully!"}


# ----------------------
# Customers table (DataTables server-side processing)
# ----------------------
@app.api_route(
    "/customers",
    methods=["GET", "POST"],
    response_model=DataTablesResponse[list[CustomerSchema]],
)
async def get_customers(datatable_request: DataTablesRequest = Depends(datatables_request)):
    datatable = DataTables(
        engine,
        CustomerSchema,
        base_query=CUSTOMER_QUERY,
        allowed_columns=CUSTOMER_COLUMNS,
        column_search=settings.column_search,
        concurrent=settings.concurrent_queries,
    )
    return await datatable.process(datatable_request)
