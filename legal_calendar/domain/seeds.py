"""Reference data every deployment starts with.

Rows are matched by a natural key, never by id, so a seed set can be applied
to a store of any age. ``Ref`` points at a parent row by its natural key and
is resolved to the parent's id when the row is inserted.
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Any

from legal_calendar.core.config import Settings
from legal_calendar.core.security import hash_password


@dataclass(frozen=True)
class Ref:
    collection: str
    field: str
    value: Any


@dataclass(frozen=True)
class SeedSet:
    collection: str
    natural_key: str
    records: tuple[dict, ...]


def _province(code: str) -> Ref:
    return Ref("provinces", "code", code)


def _category(key: str) -> Ref:
    return Ref("categories", "key", key)


SETTINGS = SeedSet(
    "settings",
    "key",
    (
        {"key": "app_name", "value": "HTIC Legal Calendar"},
        {"key": "app_version", "value": "1.0.0"},
        {"key": "contact_email", "value": "contact@htic.com.vn"},
        {"key": "contact_phone", "value": "0918682879"},
    ),
)

CATEGORIES = SeedSet(
    "categories",
    "key",
    (
        {"key": "tax", "name": "Thuế", "color": "red"},
        {"key": "insurance", "name": "BHXH", "color": "blue"},
        {"key": "report", "name": "Báo cáo", "color": "green"},
        {"key": "license", "name": "Giấy phép", "color": "orange"},
    ),
)

ORG_TYPES = SeedSet(
    "org_types",
    "key",
    (
        {"key": "manufacturing", "name": "Sản xuất"},
        {"key": "trading", "name": "Thương mại"},
        {"key": "technology", "name": "Công nghệ"},
        {"key": "services", "name": "Dịch vụ"},
    ),
)

PROVINCES = SeedSet(
    "provinces",
    "code",
    (
        {"code": "all", "name": "Toàn quốc", "region": None},
        {"code": "hcm", "name": "TP. Hồ Chí Minh", "region": "south"},
        {"code": "hn", "name": "Hà Nội", "region": "north"},
        {"code": "dn", "name": "Đà Nẵng", "region": "central"},
        {"code": "hp", "name": "Hải Phòng", "region": "north"},
        {"code": "ct", "name": "Cần Thơ", "region": "south"},
        {"code": "bd", "name": "Bình Dương", "region": "south"},
        {"code": "dn2", "name": "Đồng Nai", "region": "south"},
        {"code": "la", "name": "Long An", "region": "south"},
    ),
)

_OFFICE_HOURS = "7:30 - 16:30 (Thu 2 - Thu 6)"

AGENCIES = SeedSet(
    "agencies",
    "code",
    (
        {"code": "BTC", "name": "Bộ Tài chính", "category": "tax", "province_id": _province("all")},
        {"code": "BHXH", "name": "Bảo hiểm xã hội Việt Nam", "category": "insurance", "province_id": _province("all")},
        {"code": "TCT", "name": "Tổng cục Thuế", "category": "tax", "province_id": _province("all")},
        {"code": "BLDTBXH", "name": "Bộ Lao động - Thương binh và Xã hội", "category": "labor", "province_id": _province("all")},
        {
            "code": "HCM-TAX",
            "name": "Cuc Thue TP. Ho Chi Minh",
            "category": "tax",
            "province_id": _province("hcm"),
            "address": "63 Hai Ba Trung, Phuong Ben Nghe, Quan 1",
            "phone": "028 3829 7171",
            "hours": _OFFICE_HOURS,
            "website": "hcmtax.gov.vn",
        },
        {
            "code": "HCM-BHXH",
            "name": "BHXH TP. Ho Chi Minh",
            "category": "insurance",
            "province_id": _province("hcm"),
            "address": "35 Le Quy Don, Quan 3",
            "phone": "028 3930 2424",
            "hours": _OFFICE_HOURS,
        },
        {
            "code": "HCM-DKKD",
            "name": "So Ke hoach va Dau tu TP. HCM",
            "category": "business",
            "province_id": _province("hcm"),
            "address": "32 Le Thanh Ton, Quan 1",
            "phone": "028 3823 1520",
            "hours": _OFFICE_HOURS,
        },
        {
            "code": "HN-TAX",
            "name": "Cuc Thue TP. Ha Noi",
            "category": "tax",
            "province_id": _province("hn"),
            "address": "20 Ly Thuong Kiet, Hoan Kiem",
            "phone": "024 3826 3538",
            "hours": "8:00 - 17:00 (Thu 2 - Thu 6)",
            "website": "hanoi.gdt.gov.vn",
        },
        {
            "code": "HN-BHXH",
            "name": "BHXH TP. Ha Noi",
            "category": "insurance",
            "province_id": _province("hn"),
            "address": "15 Le Dai Hanh, Hai Ba Trung",
            "phone": "024 3978 8988",
            "hours": "8:00 - 17:00 (Thu 2 - Thu 6)",
        },
        {
            "code": "DN-TAX",
            "name": "Cuc Thue TP. Da Nang",
            "category": "tax",
            "province_id": _province("dn"),
            "address": "77 Tran Phu, Hai Chau",
            "phone": "0236 3822 173",
            "hours": _OFFICE_HOURS,
        },
    ),
)

EVENTS = SeedSet(
    "events",
    "title",
    (
        {
            "title": "Nop to khai thue GTGT thang",
            "category_id": _category("tax"),
            "agency_id": Ref("agencies", "code", "TCT"),
            "province_id": _province("all"),
            "day_of_month": 20,
            "frequency": "monthly",
            "deadline": "Ngày 20 hàng tháng",
            "priority": "high",
            "description": "Nop to khai thue Gia tri gia tang hang thang cho co quan thue. Ap dung cho doanh nghiep ke khai thue GTGT theo phuong phap khau tru.",
            "legal_base": "Luat Quan ly thue 2019, Dieu 44; Nghi dinh 126/2020/ND-CP",
            "penalty": "Phat tu 2.000.000 - 25.000.000 dong tuy theo so ngay cham nop",
            "instructions": "1. Dang nhap he thong eTax (thuedientu.gdt.gov.vn)\n2. Chon \"Ke khai truc tuyen\"\n3. Chon mau to khai 01/GTGT\n4. Dien thong tin va nop to khai\n5. Luu lai ma giao dich",
        },
        {
            "title": "Dong BHXH, BHYT, BHTN",
            "category_id": _category("insurance"),
            "agency_id": Ref("agencies", "code", "BHXH"),
            "province_id": _province("all"),
            "day_of_month": 25,
            "frequency": "monthly",
            "deadline": "Ngày cuối tháng",
            "priority": "high",
            "description": "Dong bao hiem xa hoi, bao hiem y te, bao hiem that nghiep hang thang cho nguoi lao dong.",
            "legal_base": "Luat BHXH 2014, Dieu 85-86; Luat BHYT 2008",
            "penalty": "Phat tu 12% - 15% so tien cham dong. Ngoai ra con phai dong tien lai cham nop.",
            "instructions": "1. Dang nhap BHXH dien tu\n2. Lap bang ke ho so\n3. Kiem tra danh sach lao dong\n4. Nop tien qua ngan hang lien ket",
        },
        {
            "title": "Nop to khai thue TNCN",
            "category_id": _category("tax"),
            "agency_id": Ref("agencies", "code", "TCT"),
            "province_id": _province("all"),
            "day_of_month": 20,
            "frequency": "monthly",
            "description": "Nop to khai thue Thu nhap ca nhan khau tru tai nguon cho nguoi lao dong trong doanh nghiep.",
            "legal_base": "Nghi dinh 126/2020/ND-CP; Thong tu 80/2021/TT-BTC",
            "penalty": "Phat tu 2.000.000 - 25.000.000 dong",
            "instructions": "1. Tong hop thu nhap NLD trong thang\n2. Tinh thue TNCN phai nop\n3. Ke khai mau 05/KK-TNCN\n4. Nop qua he thong eTax",
        },
        {
            "title": "Bao cao tinh hinh su dung hoa don",
            "category_id": _category("report"),
            "agency_id": Ref("agencies", "code", "TCT"),
            "province_id": _province("all"),
            "day_of_month": 30,
            "frequency": "quarterly",
            "description": "Bao cao tinh hinh su dung hoa don dien tu trong quy. Ap dung cho tat ca doanh nghiep su dung hoa don.",
            "legal_base": "Thong tu 78/2021/TT-BTC; Nghi dinh 123/2020/ND-CP",
            "penalty": "Phat tu 4.000.000 - 8.000.000 dong",
            "instructions": "1. Kiem tra hoa don da su dung trong quy\n2. Lap bao cao mau BC26/HD\n3. Nop qua he thong eTax",
        },
        {
            "title": "Nop to khai thue GTGT quy",
            "category_id": _category("tax"),
            "agency_id": Ref("agencies", "code", "TCT"),
            "province_id": _province("all"),
            "day_of_month": 30,
            "frequency": "quarterly",
            "description": "Nop to khai thue GTGT theo quy (ap dung cho DN co doanh thu duoi 50 ty/nam va dang ky ke khai theo quy).",
            "legal_base": "Luat Quan ly thue 2019; Thong tu 80/2021/TT-BTC",
            "penalty": "Phat tu 2.000.000 - 25.000.000 dong",
            "instructions": "1. Tong hop hoa don dau vao/dau ra trong quy\n2. Ke khai mau 01/GTGT\n3. Nop qua he thong eTax",
        },
        {
            "title": "Bao cao nam ve Lao dong",
            "category_id": _category("report"),
            "agency_id": Ref("agencies", "code", "BLDTBXH"),
            "province_id": _province("all"),
            "day_of_month": 5,
            "month": 1,
            "frequency": "yearly",
            "description": "Bao cao tinh hinh su dung lao dong nam truoc gui So Lao dong - Thuong binh va Xa hoi.",
            "legal_base": "Bo luat Lao dong 2019, Dieu 12",
            "penalty": "Phat tu 5.000.000 - 10.000.000 dong",
            "instructions": "1. Tong hop so lieu lao dong trong nam\n2. Lap bao cao theo mau\n3. Nop So LDTBXH dia phuong",
        },
        {
            "title": "Nop bao cao tai chinh nam",
            "category_id": _category("report"),
            "agency_id": Ref("agencies", "code", "TCT"),
            "province_id": _province("all"),
            "day_of_month": 30,
            "month": 3,
            "frequency": "yearly",
            "description": "Nop bao cao tai chinh nam cho co quan thue. Han chot 90 ngay ke tu ngay ket thuc nam tai chinh.",
            "legal_base": "Luat Ke toan 2015; Thong tu 200/2014/TT-BTC",
            "penalty": "Phat tu 5.000.000 - 10.000.000 dong",
            "instructions": "1. Hoan thanh so sach ke toan\n2. Lap bao cao tai chinh\n3. Nop qua he thong eTax",
        },
        {
            "title": "Quyet toan thue TNDN nam",
            "category_id": _category("tax"),
            "agency_id": Ref("agencies", "code", "TCT"),
            "province_id": _province("all"),
            "day_of_month": 30,
            "month": 3,
            "frequency": "yearly",
            "priority": "high",
            "description": "Quyet toan thue Thu nhap doanh nghiep nam. Han chot 90 ngay ke tu ngay ket thuc nam tai chinh.",
            "legal_base": "Luat Thue TNDN; Thong tu 78/2014/TT-BTC",
            "penalty": "Phat tu 2.000.000 - 25.000.000 dong",
            "instructions": "1. Tong hop doanh thu, chi phi ca nam\n2. Tinh thue TNDN phai nop\n3. Lap to khai quyet toan 03/TNDN\n4. Nop qua eTax",
        },
    ),
)

NEWS = SeedSet(
    "news",
    "title",
    (
        {
            "title": "Tang muc luong toi thieu vung tu 01/07/2025",
            "category": "Lao dong",
            "summary": "Chinh phu ban hanh Nghi dinh moi ve muc luong toi thieu vung, tang binh quan 6% so voi nam truoc. Doanh nghiep can dieu chinh bang luong.",
            "content": "<p>Noi dung chi tiet ve viec tang luong toi thieu vung...</p>",
            "date": "15/01/2025",
            "is_hot": True,
        },
        {
            "title": "Huong dan moi ve hoa don dien tu tu 2025",
            "category": "Thue",
            "summary": "Thong tu 78/2024/TT-BTC huong dan chi tiet ve hoa don dien tu khoi tao tu may tinh tien. Co hieu luc tu 01/01/2025.",
            "content": "<p>Noi dung chi tiet ve hoa don dien tu...</p>",
            "date": "12/01/2025",
            "is_hot": True,
        },
        {
            "title": "Sua doi Luat Doanh nghiep: Diem moi can biet",
            "category": "Doanh nghiep",
            "summary": "Luat Doanh nghiep sua doi 2024 co hieu luc voi nhieu thay doi quan trong ve dang ky kinh doanh va quan tri cong ty.",
            "content": "<p>Noi dung chi tiet ve Luat Doanh nghiep sua doi...</p>",
            "date": "10/01/2025",
        },
        {
            "title": "Chinh sach BHXH moi tu nam 2025",
            "category": "BHXH",
            "summary": "Tong hop cac thay doi ve chinh sach BHXH, BHYT, BHTN co hieu luc tu nam 2025. Dieu chinh muc dong va quyen loi.",
            "content": "<p>Noi dung chi tiet ve chinh sach BHXH...</p>",
            "date": "08/01/2025",
        },
        {
            "title": "Quy dinh moi ve thue thu nhap doanh nghiep",
            "category": "Thue",
            "summary": "Nghi dinh moi ve thue TNDN voi nhieu uu dai cho doanh nghiep nho va vua, startup cong nghe.",
            "content": "<p>Noi dung chi tiet ve thue TNDN...</p>",
            "date": "05/01/2025",
        },
    ),
)

ORGANIZATIONS = SeedSet(
    "organizations",
    "name",
    (
        {
            "name": "Cong ty TNHH ABC",
            "org_type_id": Ref("org_types", "key", "manufacturing"),
            "province_id": _province("hcm"),
            "intro": "Chuyen san xuat linh kien dien tu, tim nha phan phoi toan quoc",
            "looking_for": "Tim nha phan phoi",
            "phone": "028 1234 5678",
            "email": "contact@abc.com.vn",
            "verified": True,
        },
        {
            "name": "Cong ty CP XYZ",
            "org_type_id": Ref("org_types", "key", "trading"),
            "province_id": _province("hn"),
            "intro": "Nhap khau hang tieu dung tu Nhat Ban, Han Quoc",
            "looking_for": "Tim nha cung cap",
            "phone": "024 9876 5432",
            "email": "info@xyz.com.vn",
            "verified": True,
        },
        {
            "name": "Tech Solutions",
            "org_type_id": Ref("org_types", "key", "technology"),
            "province_id": _province("dn"),
            "intro": "Phat trien phan mem quan ly doanh nghiep",
            "looking_for": "Tim doi tac",
            "phone": "0236 1111 2222",
            "email": "hello@techsolutions.vn",
        },
    ),
)


def admin_seed(settings: Settings) -> SeedSet:
    """Default admin account; the password is only hashed when the row is inserted."""
    return SeedSet(
        "admin_users",
        "username",
        (
            {
                "username": settings.default_admin_username,
                "password_hash": partial(hash_password, settings.default_admin_password),
                "full_name": "Administrator",
                "email": "admin@htic.com.vn",
                "role": "super_admin",
            },
        ),
    )


def default_catalogue(settings: Settings) -> dict[str, SeedSet]:
    seed_sets = (
        SETTINGS,
        admin_seed(settings),
        CATEGORIES,
        ORG_TYPES,
        PROVINCES,
        AGENCIES,
        EVENTS,
        NEWS,
        ORGANIZATIONS,
    )
    return {s.collection: s for s in seed_sets}
