SCHEMA_SQL = r"""
-- Customers (cari hesaplar, alacak tarafı)
CREATE TABLE IF NOT EXISTS customers (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  user_id TEXT NOT NULL,
  name TEXT NOT NULL,
  email TEXT,
  phone TEXT,
  address TEXT,
  tax_number TEXT,                       -- Vergi No / TC Kimlik No
  tax_office TEXT,
  city TEXT,
  district TEXT,
  notes TEXT,
  default_currency TEXT NOT NULL DEFAULT 'TRY',
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS ix_customers_user ON customers(user_id);

-- Suppliers (cari hesaplar, borç tarafı)
CREATE TABLE IF NOT EXISTS suppliers (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  user_id TEXT NOT NULL,
  name TEXT NOT NULL,
  email TEXT,
  phone TEXT,
  address TEXT,
  tax_number TEXT,
  tax_office TEXT,
  city TEXT,
  district TEXT,
  website TEXT,
  sector TEXT,
  notes TEXT,
  default_currency TEXT NOT NULL DEFAULT 'TRY',
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS ix_suppliers_user ON suppliers(user_id);

-- Contact history, attached to exactly one customer or supplier
CREATE TABLE IF NOT EXISTS contact_history (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  user_id TEXT NOT NULL,
  customer_id INTEGER,
  supplier_id INTEGER,
  contact_date TEXT NOT NULL,
  contact_type TEXT NOT NULL,            -- PHONE / EMAIL / MEETING / OTHER
  summary TEXT NOT NULL,
  notes TEXT,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL,
  FOREIGN KEY (customer_id) REFERENCES customers(id) ON DELETE CASCADE,
  FOREIGN KEY (supplier_id) REFERENCES suppliers(id) ON DELETE CASCADE
);

-- Follow-up tasks, attached to exactly one customer or supplier
CREATE TABLE IF NOT EXISTS party_tasks (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  user_id TEXT NOT NULL,
  customer_id INTEGER,
  supplier_id INTEGER,
  description TEXT NOT NULL,
  due_date TEXT,
  status TEXT NOT NULL DEFAULT 'PENDING', -- PENDING / IN_PROGRESS / COMPLETED
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL,
  FOREIGN KEY (customer_id) REFERENCES customers(id) ON DELETE CASCADE,
  FOREIGN KEY (supplier_id) REFERENCES suppliers(id) ON DELETE CASCADE
);
CREATE INDEX IF NOT EXISTS ix_party_tasks_user ON party_tasks(user_id);

-- Stock items
CREATE TABLE IF NOT EXISTS stock_items (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  user_id TEXT NOT NULL,
  name TEXT NOT NULL,
  description TEXT,
  unit TEXT NOT NULL DEFAULT 'Adet',
  current_stock REAL NOT NULL DEFAULT 0,
  sale_price REAL,
  sale_price_currency TEXT NOT NULL DEFAULT 'TRY',
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS ix_stock_items_user ON stock_items(user_id);

-- Sales (customer debit)
CREATE TABLE IF NOT EXISTS sales (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  user_id TEXT NOT NULL,
  customer_id INTEGER NOT NULL,
  sale_date TEXT NOT NULL,               -- ISO date
  amount REAL NOT NULL,
  currency TEXT NOT NULL DEFAULT 'TRY',
  description TEXT,
  category TEXT NOT NULL DEFAULT 'SALE',
  stock_item_id INTEGER,
  quantity REAL,
  unit_price REAL,
  tax_rate REAL,                         -- KDV %
  tax_amount REAL,
  subtotal REAL,
  invoice_type TEXT NOT NULL DEFAULT 'NORMAL',  -- NORMAL / INVOICE
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL,
  FOREIGN KEY (customer_id) REFERENCES customers(id) ON DELETE CASCADE,
  FOREIGN KEY (stock_item_id) REFERENCES stock_items(id) ON DELETE SET NULL
);
CREATE INDEX IF NOT EXISTS ix_sales_customer ON sales(user_id, customer_id);

-- Payments received from customers (customer credit)
CREATE TABLE IF NOT EXISTS payments (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  user_id TEXT NOT NULL,
  customer_id INTEGER NOT NULL,
  payment_date TEXT NOT NULL,
  amount REAL NOT NULL,
  currency TEXT NOT NULL DEFAULT 'TRY',
  method TEXT NOT NULL DEFAULT 'CASH',   -- CASH / CARD / TRANSFER / CHECK / OTHER
  description TEXT,
  category TEXT NOT NULL DEFAULT 'PAYMENT',
  reference_number TEXT,
  check_date TEXT,
  check_serial_number TEXT,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL,
  FOREIGN KEY (customer_id) REFERENCES customers(id) ON DELETE CASCADE
);
CREATE INDEX IF NOT EXISTS ix_payments_customer ON payments(user_id, customer_id);

-- Purchases (supplier debit)
CREATE TABLE IF NOT EXISTS purchases (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  user_id TEXT NOT NULL,
  supplier_id INTEGER NOT NULL,
  purchase_date TEXT NOT NULL,
  amount REAL NOT NULL,
  currency TEXT NOT NULL DEFAULT 'TRY',
  description TEXT,
  category TEXT NOT NULL DEFAULT 'OTHER',
  purchase_type TEXT NOT NULL DEFAULT 'MANUAL',  -- STOCK / MANUAL
  stock_item_id INTEGER,
  quantity REAL,
  unit_price REAL,
  manual_product_name TEXT,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL,
  FOREIGN KEY (supplier_id) REFERENCES suppliers(id) ON DELETE CASCADE,
  FOREIGN KEY (stock_item_id) REFERENCES stock_items(id) ON DELETE SET NULL
);
CREATE INDEX IF NOT EXISTS ix_purchases_supplier ON purchases(user_id, supplier_id);

-- Payments made to suppliers (supplier credit)
CREATE TABLE IF NOT EXISTS supplier_payments (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  user_id TEXT NOT NULL,
  supplier_id INTEGER NOT NULL,
  payment_date TEXT NOT NULL,
  amount REAL NOT NULL,
  currency TEXT NOT NULL DEFAULT 'TRY',
  method TEXT NOT NULL DEFAULT 'CASH',
  description TEXT,
  category TEXT NOT NULL DEFAULT 'PAYMENT',
  reference_number TEXT,
  check_date TEXT,
  check_serial_number TEXT,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL,
  FOREIGN KEY (supplier_id) REFERENCES suppliers(id) ON DELETE CASCADE
);
CREATE INDEX IF NOT EXISTS ix_supplier_payments_supplier ON supplier_payments(user_id, supplier_id);

-- Stock movements (auditable: every apply has a matching revert when undone)
CREATE TABLE IF NOT EXISTS stock_movements (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  user_id TEXT NOT NULL,
  stock_item_id INTEGER NOT NULL,
  movement_ts TEXT NOT NULL,
  kind TEXT NOT NULL,                    -- SALE / PURCHASE / ADJUSTMENT
  action TEXT NOT NULL DEFAULT 'APPLY',  -- APPLY / REVERT
  quantity_delta REAL NOT NULL,
  balance_after REAL NOT NULL,
  sale_id INTEGER,
  purchase_id INTEGER,
  party_name TEXT,
  reason TEXT,
  FOREIGN KEY (stock_item_id) REFERENCES stock_items(id) ON DELETE CASCADE
);
CREATE INDEX IF NOT EXISTS ix_stock_movements_item ON stock_movements(user_id, stock_item_id);

-- Bank checks (çek portföyü)
CREATE TABLE IF NOT EXISTS bank_checks (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  user_id TEXT NOT NULL,
  check_number TEXT NOT NULL,
  bank_name TEXT NOT NULL,
  branch_name TEXT,
  account_number TEXT,
  amount REAL NOT NULL,
  currency TEXT NOT NULL DEFAULT 'TRY',
  issue_date TEXT NOT NULL,
  due_date TEXT NOT NULL,
  status TEXT NOT NULL DEFAULT 'PENDING', -- PENDING / CLEARED / BOUNCED / CANCELLED
  party_name TEXT NOT NULL,
  party_type TEXT NOT NULL,              -- CUSTOMER / SUPPLIER
  description TEXT,
  payment_id INTEGER,
  supplier_payment_id INTEGER,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL,
  FOREIGN KEY (payment_id) REFERENCES payments(id) ON DELETE SET NULL,
  FOREIGN KEY (supplier_payment_id) REFERENCES supplier_payments(id) ON DELETE SET NULL
);
CREATE INDEX IF NOT EXISTS ix_bank_checks_user ON bank_checks(user_id, status);

-- Orders (sipariş)
CREATE TABLE IF NOT EXISTS orders (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  user_id TEXT NOT NULL,
  order_number TEXT NOT NULL,
  customer_id INTEGER,
  customer_name TEXT NOT NULL,
  order_date TEXT NOT NULL,
  delivery_date TEXT,
  status TEXT NOT NULL DEFAULT 'PENDING',
  priority TEXT NOT NULL DEFAULT 'MEDIUM',
  total_amount REAL NOT NULL DEFAULT 0,
  currency TEXT NOT NULL DEFAULT 'TRY',
  notes TEXT,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL,
  UNIQUE (user_id, order_number),
  FOREIGN KEY (customer_id) REFERENCES customers(id) ON DELETE SET NULL
);

CREATE TABLE IF NOT EXISTS order_items (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  order_id INTEGER NOT NULL,
  product_name TEXT NOT NULL,
  quantity REAL NOT NULL,
  unit TEXT NOT NULL DEFAULT 'Adet',
  specifications TEXT,
  FOREIGN KEY (order_id) REFERENCES orders(id) ON DELETE CASCADE
);

-- Quotations (fiyat teklifi)
CREATE TABLE IF NOT EXISTS quotations (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  user_id TEXT NOT NULL,
  quotation_number TEXT NOT NULL,
  quotation_date TEXT NOT NULL,
  customer_name TEXT NOT NULL,
  customer_address TEXT,
  customer_phone TEXT,
  customer_tax_office TEXT,
  valid_until TEXT,
  sub_total REAL NOT NULL DEFAULT 0,
  tax_amount REAL NOT NULL DEFAULT 0,
  grand_total REAL NOT NULL DEFAULT 0,
  currency TEXT NOT NULL DEFAULT 'TRY',
  status TEXT NOT NULL DEFAULT 'DRAFT',  -- DRAFT / SENT / ACCEPTED / REJECTED / EXPIRED
  notes TEXT,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL,
  UNIQUE (user_id, quotation_number)
);

CREATE TABLE IF NOT EXISTS quotation_items (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  quotation_id INTEGER NOT NULL,
  stock_item_id INTEGER,
  product_name TEXT NOT NULL,
  description TEXT,
  quantity REAL NOT NULL,
  unit TEXT,
  unit_price REAL NOT NULL,
  tax_rate REAL NOT NULL DEFAULT 20,
  total REAL NOT NULL,
  FOREIGN KEY (quotation_id) REFERENCES quotations(id) ON DELETE CASCADE,
  FOREIGN KEY (stock_item_id) REFERENCES stock_items(id) ON DELETE SET NULL
);

-- Todos
CREATE TABLE IF NOT EXISTS todos (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  user_id TEXT NOT NULL,
  title TEXT NOT NULL,
  completed INTEGER NOT NULL DEFAULT 0,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL
);

-- Prospect portfolio (potansiyel müşteri)
CREATE TABLE IF NOT EXISTS portfolio_items (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  user_id TEXT NOT NULL,
  company_name TEXT NOT NULL,
  sector TEXT NOT NULL,
  gsm TEXT,
  phone TEXT,
  email TEXT,
  website TEXT,
  address TEXT,
  city TEXT,
  district TEXT,
  tax_id TEXT,
  tax_office TEXT,
  notes TEXT,
  contacted INTEGER NOT NULL DEFAULT 0,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL
);

-- Archived files (metadata; bytes live under <data_dir>/archive/<user_id>/)
CREATE TABLE IF NOT EXISTS archived_files (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  user_id TEXT NOT NULL,
  name TEXT NOT NULL,
  mime_type TEXT NOT NULL,
  size_bytes INTEGER NOT NULL,
  stored_name TEXT NOT NULL,
  upload_date TEXT NOT NULL
);

-- Bookmarks
CREATE TABLE IF NOT EXISTS useful_links (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  user_id TEXT NOT NULL,
  name TEXT NOT NULL,
  url TEXT NOT NULL,
  created_at TEXT NOT NULL
);
"""

# Child-first order; used when wiping a user's namespace.
USER_TABLES = [
    "stock_movements",
    "bank_checks",
    "contact_history",
    "party_tasks",
    "sales",
    "payments",
    "purchases",
    "supplier_payments",
    "orders",
    "quotations",
    "stock_items",
    "customers",
    "suppliers",
    "todos",
    "portfolio_items",
    "archived_files",
    "useful_links",
]
